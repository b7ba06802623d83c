"""Server-side Markdown and code rendering for the UI."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from gitstack import render
from gitstack.deps import require_user
from gitstack.models import CodeRenderRequest, MarkdownRenderRequest

router = APIRouter(prefix="/render", tags=["render"])


@router.post("/markdown", dependencies=[Depends(require_user)])
def render_markdown(body: MarkdownRenderRequest):
    return {"html": render.render_markdown(body.text)}


@router.post("/code", dependencies=[Depends(require_user)])
def render_code(body: CodeRenderRequest):
    return {"html": render.highlight_code(body.code, body.filename)}


@router.get("/styles.css", response_class=PlainTextResponse)
def styles():
    return PlainTextResponse(render.stylesheet(), media_type="text/css")
