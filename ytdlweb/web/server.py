"""
HTTP front end: submit form, job pages and artifact download.
All job state comes from JobQueueManager.
"""

import html
import logging

import uvicorn
from fastapi import Depends, FastAPI, Form, HTTPException, Path
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from ytdlweb.core.constants import APP_NAME, APP_VERSION, JobStatus, JOB_NAME_PATTERN
from ytdlweb.core.credentials import Realm
from ytdlweb.core.error_codes import JobError, QueueFullError
from ytdlweb.core.job_queue import JobQueueManager
from ytdlweb.core.status import read_prefix, sniff_content_type
from ytdlweb.core.url_parse import validate_youtube_url

logger = logging.getLogger(__name__)

_STYLE = "<style>body{font-size:x-large;margin:2em auto;max-width:50%}</style>"

JOB_PAGE = """<!doctype html>
<head><meta http-equiv="refresh" content="10">
""" + _STYLE + """
</head><body>
<p>{count} job(s) in queue, please wait. This page will refresh automatically.
"""

ACCEPTED_PAGE = """<!doctype html>
<head><meta http-equiv="refresh" content="5;url={url}">
""" + _STYLE + """
</head><body>
<p>Job queued, results will be available at <a href="{url}">{url}</a>
"""

FORM_PAGE = """<!doctype html>
<head><title>Download job submit form</title><meta charset=utf-8>
""" + _STYLE + """
<body>
<form method=post autocomplete=off>
<label for=url>YouTube url<br>(<samp>https://youtu.be/XXXXX</samp> or
<samp>https://www.youtube.com/watch?v=XXXXX</samp>)<br></label>
<input id=url type=url name=url placeholder="https://www.youtube.com/watch?v=dQw4w9WgXcQ"
	title="YouTube video page URL"
	pattern="https://(youtu.be|www.youtube.com)/.+"
	size=60 autofocus required>
<input type=submit></form>
"""


def _auth_dependencies(realm: Realm | None) -> list:
    """HTTP Basic gate for every route, or nothing when no users are configured."""
    if realm is None:
        return []
    basic = HTTPBasic(realm=realm.name)

    def require_user(credentials: HTTPBasicCredentials = Depends(basic)):
        if not realm.check(credentials.username, credentials.password):
            raise HTTPException(
                status_code=401,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": realm.challenge},
            )
        return credentials.username

    return [Depends(require_user)]


def create_app(manager: JobQueueManager, realm: Realm | None = None) -> FastAPI:
    """Build the web app around a (started or idle) queue manager."""
    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        dependencies=_auth_dependencies(realm),
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/", response_class=HTMLResponse)
    def form_page():
        return FORM_PAGE

    @app.post("/", response_class=HTMLResponse, status_code=202)
    def submit(url: str = Form("")):
        try:
            name = validate_youtube_url(url)
        except JobError:
            raise HTTPException(status_code=400, detail="Bad Request")

        try:
            manager.submit(name)
        except QueueFullError:
            raise HTTPException(status_code=503, detail="Queue is full, please try later")

        return ACCEPTED_PAGE.format(url=html.escape("/" + name))

    @app.get("/{name}")
    def job(name: str = Path(pattern=JOB_NAME_PATTERN)):
        state = manager.job_status(name)
        if state == JobStatus.PENDING:
            return HTMLResponse(JOB_PAGE.format(count=manager.pending_jobs()))
        if state == JobStatus.NOT_FOUND:
            raise HTTPException(status_code=404, detail="Not Found")

        path = manager.artifact_path(name)
        prefix = read_prefix(path)
        if prefix is None:
            # expired between the status check and now
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(
            path,
            media_type=sniff_content_type(prefix),
            filename=f"{name}.mp4" if state == JobStatus.COMPLETED else None,
        )

    return app


def parse_addr(addr: str) -> tuple[str, int]:
    """Split 'host:port' (host may be empty) into a server address tuple."""
    host, sep, port = addr.rpartition(':')
    if not sep:
        raise ValueError(f"address must be host:port, got {addr!r}")
    return host.strip('[]') or "0.0.0.0", int(port)


def serve(addr: str, manager: JobQueueManager, realm: Realm | None = None):
    """Run the HTTP server until interrupted."""
    host, port = parse_addr(addr)
    logger.info("Listening on http://%s:%d/", host, port)
    uvicorn.run(create_app(manager, realm), host=host, port=port, log_config=None)
