from litestar import Controller, Request, get, post
from litestar.enums import MediaType
from litestar.response import Redirect, Response
from litestar.status_codes import HTTP_303_SEE_OTHER
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.config import Settings
from inkwell.db.services import post_service
from inkwell.ingest import SubmissionDemultiplexer, iter_form_parts
from inkwell.lib.template import render_template

FEED_PATH = "/home"


class BlogController(Controller):
    path = "/"

    @get(["/", FEED_PATH])
    async def home(self, request: Request, db_session: AsyncSession) -> Response:
        """Render every post, newest first."""
        posts = await post_service.list_views(db_session)
        html = render_template(request, "index.html", posts=posts)
        return Response(content=html, media_type=MediaType.HTML)

    @post("/post")
    async def create_post(self, request: Request, db_session: AsyncSession) -> Redirect:
        """Ingest a multipart submission and redirect back to the feed."""
        state = request.app.state
        settings: Settings = state.settings

        demultiplexer = SubmissionDemultiplexer(
            state.asset_store,
            state.avatar_fetcher,
            max_image_size=settings.uploads.max_image_size,
            verify_image_content=settings.uploads.verify_image_content,
        )
        draft = await demultiplexer.demultiplex(
            iter_form_parts(request, max_parts=settings.uploads.max_parts)
        )
        await post_service.finalize(
            db_session, draft, reject_blank=settings.posts.reject_blank_fields
        )

        return Redirect(path=FEED_PATH, status_code=HTTP_303_SEE_OTHER)
