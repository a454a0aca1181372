import io
import logging

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse
from pydantic import BaseModel, ValidationError

from b64url_stream import __version__
from b64url_stream.pipelines.transcode import build_decoder, build_encoder
from b64url_stream.utils.config import TranscodeOptions
from b64url_stream.utils.constants import DEFAULT_BUFFER_SIZE, DEFAULT_CHARSET
from b64url_stream.utils.errors import DataFormatError, TranscodeError

logger = logging.getLogger(__name__)

# =========================
# FastAPI + CORS (dev)
# =========================
app = FastAPI(title="Base64 URL-safe Pipes & Filters API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================
# Pydantic models
# =========================
class HealthStatus(BaseModel):
    status: str
    version: str


def _options(**kwargs) -> TranscodeOptions:
    try:
        return TranscodeOptions(**kwargs)
    except ValidationError as e:
        detail = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        raise HTTPException(status_code=422, detail=detail)


def _run(pipeline) -> None:
    pipeline.run()
    logger.debug("[%s] done\n%s", pipeline.name, pipeline.format_metrics())


def _encode(data: bytes, options: TranscodeOptions) -> str:
    out = io.StringIO()
    _run(build_encoder(io.BytesIO(data), out, wrap=options.wrap,
                       buffer_size=options.buffer_size, queue_size=options.queue_size))
    return out.getvalue()


def _decode(text: str, options: TranscodeOptions) -> bytes:
    out = io.BytesIO()
    _run(build_decoder(io.StringIO(text), out, ignore_garbage=options.ignore_garbage,
                       buffer_size=options.buffer_size, queue_size=options.queue_size))
    return out.getvalue()


# =========================
# Endpoints
# =========================
@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs")


@app.get("/api/health", response_model=HealthStatus)
def health():
    return HealthStatus(status="ok", version=__version__)


@app.post("/api/encode", response_class=PlainTextResponse)
async def encode(request: Request, wrap: int = 0, charset: str = DEFAULT_CHARSET, buffer_size: int = DEFAULT_BUFFER_SIZE):
    options = _options(wrap=wrap, charset=charset, buffer_size=buffer_size)
    data = await request.body()
    try:
        text = await run_in_threadpool(_encode, data, options)
    except TranscodeError as e:
        logger.exception("encode failed")
        raise HTTPException(status_code=500, detail=f"internal error: {e}")
    return Response(content=text.encode(options.charset), media_type=f"text/plain; charset={options.charset}")


@app.post("/api/decode")
async def decode(request: Request, ignore_garbage: bool = False, charset: str = DEFAULT_CHARSET, buffer_size: int = DEFAULT_BUFFER_SIZE):
    options = _options(decode=True, ignore_garbage=ignore_garbage, charset=charset, buffer_size=buffer_size)
    body = await request.body()
    try:
        text = body.decode(options.charset)
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"request body is not valid {options.charset}: {e.reason}")
    try:
        data = await run_in_threadpool(_decode, text, options)
    except DataFormatError as e:
        raise HTTPException(status_code=422, detail=f"invalid input: {e}")
    except TranscodeError as e:
        logger.exception("decode failed")
        raise HTTPException(status_code=500, detail=f"internal error: {e}")
    return Response(content=data, media_type="application/octet-stream")


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=204)


# chạy trực tiếp (tuỳ chọn)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("b64url_stream.api.main:app", host="0.0.0.0", port=8000)
