"""Browser page hosting the library pane and the video player."""

from __future__ import annotations

from functools import lru_cache
from importlib.resources import files

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from vidshelf import __version__

router = APIRouter()


@lru_cache(maxsize=1)
def _load_template() -> str:
    template = files("vidshelf.web").joinpath("templates", "index.html")
    return template.read_text(encoding="utf-8").replace("{{ version }}", __version__)


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(content=_load_template())
