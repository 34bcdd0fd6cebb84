"""
This file is the entry point for the 'linkforest' command-line tool.
Every editing command loads the persisted forest, applies one change and
commits it, so the previous state always lands in the backup slot.
"""
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.tree import Tree as RichTree

from common.app_setup import monkeypatch_print, print_and_log, print_error, setup_logging
from linkforest import EditSession, Settings, TreeRepository, is_valid_url, load_settings
from linkforest.errors import ConfigError, CycleError, PersistenceError
from linkforest.index import ROOT, find_folder, find_link
from linkforest.models import FolderNode, Tree
from linkforest.operations import count_nodes
from storage.file_handle import LocalTextFile
from storage.json_store import JsonFileStore

app = typer.Typer(add_completion=False, help="Edit a personal forest of folders and links.")

monkeypatch_print()


@app.callback()
def main(ctx: typer.Context, config: str = typer.Option(None, "--config", help="Path to the YAML config file")):
    try:
        settings = load_settings(config)
    except ConfigError as e:
        print_error(e.message)
        raise typer.Exit(2)
    setup_logging(app_name="linkforest", daemon=False, loglevel=settings.loglevel,
                  logfile=str(settings.log_file) if settings.log_file else None)
    ctx.obj = settings


def _repository(settings: Settings) -> TreeRepository:
    return TreeRepository(
        JsonFileStore(settings.store_path),
        file_handle=LocalTextFile(settings.bound_file) if settings.bound_file else None,
        primary_key=settings.primary_key,
        backup_key=settings.backup_key,
    )


def _open(ctx: typer.Context) -> EditSession:
    session = EditSession(_repository(ctx.obj))
    try:
        session.load()
    except PersistenceError as e:
        print_error(e.message)
        raise typer.Exit(1)
    return session


def _commit(session: EditSession, message: str) -> None:
    if not session.is_dirty():
        print_and_log("No changes to save.")
        return
    try:
        session.commit()
    except PersistenceError as e:
        print_error(f"Save failed, nothing was written: {e.message}")
        raise typer.Exit(1)
    print_and_log(message)


def _missing(item_id: str) -> None:
    print_and_log(f"Nothing changed: no folder or link with id {item_id}.")


def _url_hint(url: str) -> None:
    if url and not is_valid_url(url):
        print(f"[yellow]Warning:[/yellow] {url!r} does not look like a valid URL.")


def _render(nodes: list[FolderNode], branch: RichTree) -> None:
    for node in nodes:
        sub = branch.add(f"📁 [bold]{node.title or '(untitled)'}[/bold] [dim]{node.id}[/dim]")
        for link in node.links:
            sub.add(f"🔗 {link.title or link.url or '-'} [dim]{link.url} {link.id}[/dim]")
        _render(node.children, sub)


def _write_or_echo(text: str, path: Path | None) -> None:
    if path is None:
        typer.echo(text)
        return
    path.write_text(text, encoding="utf-8")
    print_and_log(f"Wrote {path}")


@app.command()
def show(ctx: typer.Context, query: str = typer.Option("", "--query", "-q", help="Only show matches for this text")):
    """Print the forest (or its search view) as a tree."""
    session = _open(ctx)
    tree: Tree = session.view(query)
    if not tree:
        print_and_log("No matches." if query else "Empty forest: add a root folder.")
        return
    root = RichTree("[bold]Link forest[/bold]")
    _render(tree, root)
    Console().print(root)


@app.command()
def status(ctx: typer.Context):
    """Show counts for the saved forest and whether a backup exists."""
    session = _open(ctx)
    folders, links = count_nodes(session.draft)
    try:
        backup = session.repository.load_backup()
    except PersistenceError as e:
        print_error(e.message)
        raise typer.Exit(1)
    typer.echo(json.dumps({
        "roots": len(session.draft),
        "folders": folders,
        "links": links,
        "backup_roots": len(backup),
        "bound_file": str(ctx.obj.bound_file) if ctx.obj.bound_file else None,
    }))


@app.command("add-folder")
def add_folder(ctx: typer.Context, title: str = typer.Argument(..., help="Folder title"),
               parent: str = typer.Option(None, "--parent", "-p", help="Parent folder id (root if omitted)")):
    """Create a folder at the root or under another folder."""
    session = _open(ctx)
    node = session.add_child_folder(parent, title) if parent else session.add_root_folder(title)
    if node is None:
        _missing(parent)
        return
    _commit(session, f"Added folder {node.id}")


@app.command("add-link")
def add_link(ctx: typer.Context, folder_id: str = typer.Argument(...), title: str = typer.Argument(...),
             url: str = typer.Argument("")):
    """Add a link to a folder."""
    session = _open(ctx)
    link = session.add_link(folder_id, title, url)
    if link is None:
        _missing(folder_id)
        return
    _url_hint(url)
    _commit(session, f"Added link {link.id}")


@app.command()
def rename(ctx: typer.Context, item_id: str = typer.Argument(...), title: str = typer.Argument(...)):
    """Change the title of a folder or a link."""
    session = _open(ctx)
    if not (session.rename_folder(item_id, title) or session.update_link(item_id, title=title)):
        _missing(item_id)
        return
    _commit(session, f"Renamed {item_id}")


@app.command("set-link")
def set_link(ctx: typer.Context, link_id: str = typer.Argument(...),
             title: str = typer.Option(None, "--title"), url: str = typer.Option(None, "--url")):
    """Update the title and/or url of a link."""
    session = _open(ctx)
    if not session.update_link(link_id, title=title, url=url):
        _missing(link_id)
        return
    if url is not None:
        _url_hint(url)
    _commit(session, f"Updated link {link_id}")


@app.command()
def delete(ctx: typer.Context, item_id: str = typer.Argument(...),
           yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Delete a link, or a folder with everything inside it."""
    session = _open(ctx)
    folder = find_folder(session.draft, item_id)
    if folder is not None:
        if not yes and not typer.confirm(f"Delete folder {folder.title!r} and everything inside?"):
            raise typer.Abort()
        session.delete_folder(item_id)
    elif not session.delete_link(item_id):
        _missing(item_id)
        return
    _commit(session, f"Deleted {item_id}")


@app.command()
def move(ctx: typer.Context, item_id: str = typer.Argument(...),
         up: bool = typer.Option(True, "--up/--down", help="Direction among siblings")):
    """Move a folder or link one place up or down among its siblings."""
    session = _open(ctx)
    direction = -1 if up else 1
    if find_link(session.draft, item_id) is not None:
        moved = session.move_link(item_id, direction)
    else:
        moved = session.move_folder(item_id, direction)
    if not moved:
        print_and_log(f"Nothing changed: {item_id} cannot move further.")
        return
    _commit(session, f"Moved {item_id} {'up' if up else 'down'}")


@app.command()
def relocate(ctx: typer.Context, item_id: str = typer.Argument(...),
             target_id: str = typer.Argument(..., help="Destination folder id, or 'root' for folders")):
    """Cut a folder or link and paste it into another folder."""
    session = _open(ctx)
    target = ROOT if target_id == "root" else target_id
    try:
        if find_link(session.draft, item_id) is not None:
            moved = target != ROOT and session.relocate_link(item_id, target)
        else:
            moved = session.relocate_folder(item_id, target)
    except CycleError as e:
        print_error(e.message)
        raise typer.Exit(1)
    if not moved:
        _missing(f"{item_id} or {target_id}")
        return
    _commit(session, f"Moved {item_id} into {target_id}")


@app.command("sort")
def sort_cmd(ctx: typer.Context):
    """Sort every folder and link alphabetically (case-insensitive)."""
    session = _open(ctx)
    session.sort()
    _commit(session, "Sorted forest")


@app.command()
def prune(ctx: typer.Context):
    """Remove folders that hold no links anywhere below them."""
    session = _open(ctx)
    session.prune()
    _commit(session, "Removed empty folders")


@app.command("export-text")
def export_text(ctx: typer.Context, path: Path = typer.Argument(None, help="Output file (stdout if omitted)")):
    """Export the forest in the indented text format."""
    _write_or_echo(_open(ctx).export_text(), path)


@app.command("import-text")
def import_text(ctx: typer.Context, path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """Replace the forest with the contents of a text export."""
    session = _open(ctx)
    roots = session.import_text(path.read_text(encoding="utf-8"))
    if roots == 0:
        print(f"[yellow]Warning:[/yellow] {path} contained no folders.")
    _commit(session, f"Imported {roots} root folders from {path}")


@app.command("export-json")
def export_json(ctx: typer.Context, path: Path = typer.Argument(None, help="Output file (stdout if omitted)")):
    """Export the forest as JSON interchange data."""
    _write_or_echo(json.dumps(_open(ctx).export_json(), ensure_ascii=False, indent=2), path)


@app.command("import-json")
def import_json(ctx: typer.Context, path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """Replace the forest with JSON interchange data (malformed entries are skipped)."""
    session = _open(ctx)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print_error(f"{path} is not valid JSON: {e}")
        raise typer.Exit(1)
    roots = session.import_json(raw)
    _commit(session, f"Imported {roots} root folders from {path}")


@app.command()
def restore(ctx: typer.Context, yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Bring back the forest as it was before the last save."""
    session = _open(ctx)
    try:
        restored = session.restore_from_backup()
    except PersistenceError as e:
        print_error(e.message)
        raise typer.Exit(1)
    if not restored:
        print_and_log("No backup available.")
        return
    if not yes and not typer.confirm("Restore from backup? This replaces the current forest."):
        raise typer.Abort()
    _commit(session, "Restored forest from backup")


@app.command()
def serve(ctx: typer.Context, port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
          memory: bool = typer.Option(False, help="Serve an empty in-memory forest")):
    """Run the HTTP editing daemon in the foreground."""
    from link_daemon.daemon import run
    config = ctx.parent.params.get("config") if ctx.parent else None
    run(port=port, config=config, memory=memory)


if __name__ == "__main__":
    app()
