"""FastAPI application exposing the importer over HTTP."""

import secrets
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, Security
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import __version__
from ..board import build_board
from ..import_migrate.assets import mime_for


def create_app(runtime: Any, token: str | None = None) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with store, blobs and migrator
        token: Bearer token for authentication (None to disable auth)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="worklog-migrator API",
        description="Import legacy note-tool exports",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    @app.get("/health")  # type: ignore[misc]
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.post("/migrations/import")  # type: ignore[misc]
    async def import_archive(
        request: Request,
        owner: str = Query(..., description="Owner id for created records"),
        name: str = Query("upload.zip", description="Upload file name"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Import a ZIP sent as the raw request body."""
        data = await request.body()
        if not data:
            raise HTTPException(status_code=400, detail="Empty upload")
        # The import is blocking I/O; keep it off the event loop
        report = await run_in_threadpool(runtime.migrator.import_archive, owner, data, name)
        return report.to_dict()

    @app.get("/files/{stored_name}")  # type: ignore[misc]
    def get_file(stored_name: str, auth: None = Depends(verify_token)) -> Response:
        """Serve stored attachment bytes."""
        try:
            data = runtime.blobs.load(stored_name)
        except (FileNotFoundError, ValueError):
            raise HTTPException(status_code=404, detail=f"File {stored_name} not found") from None

        asset = runtime.store.assets.find_by_stored_name(stored_name)
        media_type = asset.mime_type if asset else mime_for(stored_name)
        return Response(content=data, media_type=media_type)

    @app.get("/board")  # type: ignore[misc]
    def board(
        owner: str = Query(..., description="Owner id"),
        month: str = Query(..., description="Month as YYYY-MM"),
        auth: None = Depends(verify_token),
    ) -> list[dict[str, Any]]:
        """Monthly board rows."""
        try:
            year_str, month_str = month.split("-", 1)
            year, month_num = int(year_str), int(month_str)
            rows = build_board(runtime.store, owner, year, month_num, runtime.heuristics)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid month: {month}") from None

        return [
            {**asdict(row), "due_date": row.due_date.isoformat() if row.due_date else None}
            for row in rows
        ]

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
