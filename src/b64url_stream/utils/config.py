import codecs

from pydantic import BaseModel, Field, field_validator

from b64url_stream.utils.constants import DEFAULT_BUFFER_SIZE, DEFAULT_CHARSET, DEFAULT_QUEUE_SIZE


class TranscodeOptions(BaseModel):
    """Options consumed by the encode/decode pipelines. buffer_size and queue_size only tune throughput."""
    decode: bool = False
    ignore_garbage: bool = False
    wrap: int = Field(default=0, ge=0)
    charset: str = DEFAULT_CHARSET
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, gt=0)
    queue_size: int = Field(default=DEFAULT_QUEUE_SIZE, gt=0)

    @field_validator("charset")
    @classmethod
    def _known_charset(cls, value: str) -> str:
        try:
            return codecs.lookup(value).name
        except LookupError:
            raise ValueError(f"'{value}' is not a supported encoding name")
