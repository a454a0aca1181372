import logging
from typing import List, Tuple

from b64url_stream.utils.constants import URLSAFE_CHARS, PAD_CHAR

logger = logging.getLogger(__name__)


def split_next_clean_section(text: str, ignore_garbage: bool = False) -> Tuple[str, str]:
    """
    Split the next section to forward off the front of `text`.

    Returns (section, remaining). The section starts with the leading run of
    alphabet characters. What follows depends on the policy:

    - ignore_garbage: the non-alphabet run after it is dropped;
    - default: a whitespace character is dropped, any other non-alphabet
      character is kept in the section together with the non-alphabet,
      non-whitespace characters after it.

    `remaining` always starts where scanning stopped and must be fed back in.
    """
    n = len(text)
    i = 0
    while i < n and text[i] in URLSAFE_CHARS:
        i += 1
    if i == n:
        return text, ""

    if ignore_garbage:
        j = i
        while j < n and text[j] not in URLSAFE_CHARS:
            j += 1
        return text[:i], text[j:]

    j = i
    while j < n and text[j] not in URLSAFE_CHARS:
        if text[j].isspace():
            return text[:j], text[j + 1:]
        j += 1
    return text[:j], text[j:]


class GarbageFilter:
    """
    Envelope in: str read from the character source
    Envelope out: str sections ready for Base64ToBinaryFilter

    Whitespace never reaches the decoder. Other non-alphabet characters are
    forwarded (so the decoder rejects them) unless `ignore_garbage` is set.
    With `ignore_garbage`, '=' marks the end of the encoded data and the rest
    of the stream is discarded.
    """
    stage_name = "garbage"

    def __init__(self, ignore_garbage: bool = False):
        self.ignore_garbage = bool(ignore_garbage)
        self._padding_seen = False
        self.dropped = 0

    def process(self, text: str) -> List[str]:
        if self._padding_seen:
            self.dropped += len(text)
            return []
        if self.ignore_garbage:
            pad_at = text.find(PAD_CHAR)
            if pad_at >= 0:
                logger.debug("pad character at offset %d, discarding the rest of the input", pad_at)
                self.dropped += len(text) - pad_at
                text = text[:pad_at]
                self._padding_seen = True

        sections = []
        remaining = text
        while remaining:
            before = len(remaining)
            section, remaining = split_next_clean_section(remaining, self.ignore_garbage)
            self.dropped += before - len(section) - len(remaining)
            if section:
                sections.append(section)
        return sections

    def flush(self) -> List[str]:
        if self.dropped:
            logger.debug("dropped %d non-alphabet character(s)", self.dropped)
        return []
