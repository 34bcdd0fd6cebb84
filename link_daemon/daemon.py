"""
link_daemon.daemon
------------------
REST API over a single in-memory edit session, using FastAPI.
Edits go to the session draft; nothing is written to storage until
POST /commit, which also rotates the previous state into the backup slot.
"""
import json
import logging
import socket
import sys
from typing import Any, Literal

import typer
import uvicorn
from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, Field

from common.app_setup import setup_logging
from linkforest import EditSession, TreeRepository, load_settings
from linkforest.errors import CycleError, PersistenceError
from linkforest.index import ROOT, find_link
from linkforest.models import is_valid_url
from linkforest.operations import count_nodes
from linkforest.session import HoldingFolder, HoldingLink
from storage.file_handle import LocalTextFile
from storage.json_store import JsonFileStore, MemoryStore

logger = logging.getLogger(__name__)


# Request bodies
class FolderCreateModel(BaseModel):
    title: str = Field(default="New folder")


class FolderUpdateModel(BaseModel):
    title: str


class LinkCreateModel(BaseModel):
    title: str = ""
    url: str = ""


class LinkUpdateModel(BaseModel):
    title: str | None = None
    url: str | None = None


class PasteModel(BaseModel):
    target_id: str | None = Field(None, description="Folder to paste into; null or '__root__' for the forest root")


class TextImportModel(BaseModel):
    text: str


app = FastAPI()

# Session served by this process; replaced by run() or use_session().
session = EditSession(TreeRepository(MemoryStore()))
session.load()


def use_session(new_session: EditSession) -> EditSession:
    """Swap the served session (the store it edits comes with it)."""
    global session
    session = new_session
    return session


def get_server():
    # Helper to get the running server instance
    return getattr(app.state, "uvicorn_server", None)


def _not_found(kind: str, item_id: str) -> HTTPException:
    logger.warning(f"{kind} not found: {item_id}")
    return HTTPException(status_code=404, detail=f"{kind} not found")


def _tree_payload() -> list[dict[str, Any]]:
    return session.export_json()


@app.post("/shutdown")
def shutdown():
    """Shutdown the server gracefully."""
    logger.info("Shutdown requested via /shutdown endpoint.")
    server = get_server()
    if server:
        server.should_exit = True
    return {"message": "Server shutting down"}


@app.get("/status")
def status():
    """Health and draft state of the daemon."""
    server = get_server()
    folders, links = count_nodes(session.draft)
    buffer = "empty"
    if isinstance(session.buffer, HoldingFolder):
        buffer = "folder"
    elif isinstance(session.buffer, HoldingLink):
        buffer = "link"
    return {
        "status": "shutting_down" if server and server.should_exit else "ok",
        "dirty": session.is_dirty(),
        "roots": len(session.draft),
        "folders": folders,
        "links": links,
        "buffer": buffer,
        "query": session.query,
    }


@app.get("/tree")
def get_tree(q: str | None = None):
    """The draft, or its search view when 'q' is given."""
    if not q:
        return _tree_payload()
    logger.debug(f"Searching draft for {q!r}")
    return [node.model_dump(mode="json") for node in session.view(q)]


@app.post("/folders", status_code=201)
def create_root_folder(folder: FolderCreateModel):
    node = session.add_root_folder(folder.title)
    logger.info(f"Created root folder {node.id} ({node.title!r})")
    return node.model_dump(mode="json")


@app.post("/folders/{folder_id}/children", status_code=201)
def create_child_folder(folder_id: str, folder: FolderCreateModel):
    node = session.add_child_folder(folder_id, folder.title)
    if node is None:
        raise _not_found("Folder", folder_id)
    logger.info(f"Created folder {node.id} under {folder_id}")
    return node.model_dump(mode="json")


@app.post("/folders/{folder_id}/links", status_code=201)
def create_link(folder_id: str, link: LinkCreateModel):
    entry = session.add_link(folder_id, link.title, link.url)
    if entry is None:
        raise _not_found("Folder", folder_id)
    logger.info(f"Created link {entry.id} under {folder_id}")
    payload = entry.model_dump(mode="json")
    payload["url_valid"] = is_valid_url(entry.url)
    return payload


@app.put("/folders/{folder_id}")
def rename_folder(folder_id: str, update: FolderUpdateModel):
    if not session.rename_folder(folder_id, update.title):
        raise _not_found("Folder", folder_id)
    return {"id": folder_id, "title": update.title}


@app.put("/links/{link_id}")
def update_link(link_id: str, update: LinkUpdateModel):
    if not session.update_link(link_id, title=update.title, url=update.url):
        raise _not_found("Link", link_id)
    entry = find_link(session.draft, link_id)
    payload = entry.model_dump(mode="json")
    payload["url_valid"] = is_valid_url(entry.url)
    return payload


@app.delete("/folders/{folder_id}", status_code=204)
def delete_folder(folder_id: str):
    if not session.delete_folder(folder_id):
        raise _not_found("Folder", folder_id)


@app.delete("/links/{link_id}", status_code=204)
def delete_link(link_id: str):
    if not session.delete_link(link_id):
        raise _not_found("Link", link_id)


@app.post("/folders/{folder_id}/move/{direction}")
def move_folder(folder_id: str, direction: Literal["up", "down"]):
    moved = session.move_folder(folder_id, -1 if direction == "up" else 1)
    return {"id": folder_id, "moved": moved}


@app.post("/links/{link_id}/move/{direction}")
def move_link(link_id: str, direction: Literal["up", "down"]):
    moved = session.move_link(link_id, -1 if direction == "up" else 1)
    return {"id": link_id, "moved": moved}


@app.post("/folders/{folder_id}/cut")
def cut_folder(folder_id: str):
    if not session.cut_folder(folder_id):
        raise _not_found("Folder", folder_id)
    return {"buffer": "folder", "id": folder_id}


@app.post("/links/{link_id}/cut")
def cut_link(link_id: str):
    if not session.cut_link(link_id):
        raise _not_found("Link", link_id)
    return {"buffer": "link", "id": link_id}


@app.post("/paste")
def paste(target: PasteModel):
    if isinstance(session.buffer, (HoldingFolder, HoldingLink)):
        try:
            pasted = session.paste_into(target.target_id)
        except CycleError as e:
            raise HTTPException(status_code=409, detail=str(e))
        if not pasted:
            raise _not_found("Folder", target.target_id or ROOT)
        return {"pasted": True, "target_id": target.target_id}
    raise HTTPException(status_code=409, detail="Nothing to paste")


@app.post("/folders/{folder_id}/relocate")
def relocate_folder(folder_id: str, target: PasteModel):
    """Move a folder under another folder (or to the root) in one step."""
    try:
        moved = session.relocate_folder(folder_id, target.target_id)
    except CycleError as e:
        logger.warning(e.message)
        raise HTTPException(status_code=409, detail=e.message)
    if not moved:
        raise _not_found("Folder", folder_id)
    return {"id": folder_id, "target_id": target.target_id}


@app.post("/sort")
def sort_tree():
    session.sort()
    return _tree_payload()


@app.post("/prune")
def prune_tree():
    session.prune()
    return _tree_payload()


@app.post("/commit")
def commit():
    try:
        session.commit()
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return {"committed": True, "dirty": session.is_dirty()}


@app.post("/cancel")
def cancel():
    return {"discarded": session.cancel(), "dirty": session.is_dirty()}


@app.post("/restore")
def restore():
    try:
        restored = session.restore_from_backup()
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return {"restored": restored, "dirty": session.is_dirty()}


@app.get("/export/text")
def export_text():
    return {"text": session.export_text()}


@app.post("/import/text")
def import_text(body: TextImportModel):
    roots = session.import_text(body.text)
    return {"roots": roots, "dirty": session.is_dirty()}


@app.get("/export/json")
def export_json():
    return _tree_payload()


@app.post("/import/json")
def import_json(payload: Any = Body(None)):
    roots = session.import_json(payload)
    return {"roots": roots, "dirty": session.is_dirty()}


app_cli = typer.Typer()


@app_cli.command()
def run(
    port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
    config: str = typer.Option(None, help="Path to the YAML config file"),
    memory: bool = typer.Option(False, help="Serve an empty in-memory forest instead of the store file"),
):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    settings = load_settings(config)
    setup_logging(app_name="linkforest", daemon=True, loglevel=settings.loglevel,
                  logfile=str(settings.log_file) if settings.log_file else None)
    if memory:
        repository = TreeRepository(MemoryStore(), primary_key=settings.primary_key, backup_key=settings.backup_key)
    else:
        repository = TreeRepository(
            JsonFileStore(settings.store_path),
            file_handle=LocalTextFile(settings.bound_file) if settings.bound_file else None,
            primary_key=settings.primary_key,
            backup_key=settings.backup_key,
        )
    try:
        use_session(EditSession(repository)).load()
    except PersistenceError as e:
        logger.error(f"ERROR: {e.message}; refusing to serve over it.")
        sys.exit(1)

    if port is None or port == 0:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(('127.0.0.1', port))
            except OSError:
                logger.error(f"ERROR: Port {port} is already in use.")
                sys.exit(98)  # 98 = EADDRINUSE
        logger.info(f"Using port: {port}")
        print(json.dumps({"event": "port_used", "port": port}), flush=True)
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info"))
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Starting Uvicorn server on port {port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped")


if __name__ == "__main__":
    app_cli()
