from typing import List

from b64url_stream.utils.constants import LINE_TERMINATOR


class LineWrapFilter:
    """
    Envelope in: str of encoded text
    Envelope out: the same text broken into lines of `wrap` characters

    wrap=0 turns the filter into a pass-through. The count of characters on
    the current line survives across chunks; a terminator is only forced at
    the end when the last line is exactly full.
    """
    stage_name = "wrap"

    def __init__(self, wrap: int = 0, terminator: str = LINE_TERMINATOR):
        if wrap < 0:
            raise ValueError(f"wrap must be >= 0, got {wrap}")
        self.wrap = int(wrap)
        self.terminator = terminator
        self._on_line = 0

    def process(self, text: str) -> List[str]:
        if not self.wrap:
            return [text] if text else []
        pieces = []
        remaining = text
        while remaining:
            room = self.wrap - self._on_line
            if room < len(remaining):
                pieces.append(remaining[:room])
                pieces.append(self.terminator)
                remaining = remaining[room:]
                self._on_line = 0
            else:
                pieces.append(remaining)
                self._on_line += len(remaining)
                remaining = ""
        out = "".join(pieces)
        return [out] if out else []

    def flush(self) -> List[str]:
        if self.wrap and self._on_line == self.wrap:
            self._on_line = 0
            return [self.terminator]
        return []
