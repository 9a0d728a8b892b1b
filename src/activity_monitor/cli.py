"""Main CLI entry point for activity-monitor."""

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.table import Table

from activity_monitor import __version__
from activity_monitor.capture import ActivityCapture, RawEvent
from activity_monitor.config import (
    RuntimeSettings,
    SettingsManager,
    parse_setting_value,
)
from activity_monitor.config.paths import local_storage_dir, slot_storage_dir
from activity_monitor.constants import LOG_LEVEL_DEBUG, LOG_LEVEL_WARNING
from activity_monitor.exceptions import ActivityMonitorError
from activity_monitor.logging_config import configure_logging
from activity_monitor.models.enums import TimestampFormat
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage import ActivityStore, FileKeyValueStorage
from activity_monitor.utils import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

# Load .env file from current directory if it exists
load_dotenv(Path.cwd() / ".env", verbose=False)

app = typer.Typer(
    name="activity-monitor",
    help="Inspect and manage the activity log.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
config_app = typer.Typer(help="Show or change preferences.", no_args_is_help=True)
app.add_typer(config_app, name="config")


@dataclass
class CLIState:
    runtime: RuntimeSettings
    debug: bool = False


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.find_root().obj
    if not isinstance(state, CLIState):
        state = CLIState(runtime=RuntimeSettings())
        ctx.find_root().obj = state
    return state


def _open(ctx: typer.Context) -> tuple[SettingsManager, ActivityStore]:
    """Load preferences, configure logging and load the store."""
    state = _state(ctx)
    runtime = state.runtime
    data_dir = runtime.data_dir
    manager = SettingsManager.from_data_dir(data_dir)
    prefs = manager.preferences

    if state.debug:
        level = LOG_LEVEL_DEBUG
    elif "log_level" in runtime.model_fields_set:
        level = runtime.log_level
    elif runtime.log_file:
        level = prefs.logging.level
    else:
        # Keep terminal output readable unless asked otherwise
        level = LOG_LEVEL_WARNING
    configure_logging(level, log_file=runtime.log_file, log_rotation=prefs.logging.rotation)

    store = ActivityStore(
        manager,
        slot_storage=FileKeyValueStorage(slot_storage_dir(data_dir)),
        local_storage=FileKeyValueStorage(local_storage_dir(data_dir)),
        profile_id=runtime.profile,
    )
    store.load()
    return manager, store


def format_timestamp(timestamp_ms: int, style: str, now_ms: int | None = None) -> str:
    """Render a record timestamp as relative ("5m ago") or absolute text."""
    if style == TimestampFormat.ABSOLUTE.value:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")

    now = now_ms if now_ms is not None else int(time.time() * 1000)
    seconds = max(0, (now - timestamp_ms) // 1000)
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def _format_quantity(record: ActivityRecord) -> str:
    return f"{record.quantity:g}" if record.quantity is not None else ""


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    data_dir: Path | None = typer.Option(
        None,
        "--data-dir",
        help="Data directory (default: ACTIVITY_MONITOR_DATA_DIR or .activity-monitor)",
    ),
    profile: str | None = typer.Option(None, "--profile", help="Active profile id"),
) -> None:
    """Inspect and manage the activity log."""
    try:
        runtime = RuntimeSettings()
    except ValueError as e:
        print_error(f"Invalid environment settings: {e}")
        raise typer.Exit(code=1) from e
    updates: dict[str, object] = {}
    if data_dir is not None:
        updates["data_dir"] = data_dir
    if profile:
        updates["profile"] = profile
    if updates:
        runtime = runtime.model_copy(update=updates)
    ctx.obj = CLIState(runtime=runtime, debug=debug)


@app.command("version")
def version() -> None:
    """Show the installed version."""
    console.print(f"activity-monitor {__version__}")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show record count, payload sizes and estimated capacity."""
    try:
        _, store = _open(ctx)
        result = store.get_stats()
    except ActivityMonitorError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    table = Table(title=f"Activity log ({store.mode.value})", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Records", str(result.count))
    table.add_row("Compressed size", f"{result.compressed_size} bytes")
    table.add_row("Uncompressed size", f"{result.uncompressed_size} bytes")
    table.add_row("Compression ratio", f"{result.compression_ratio_percent:.1f}%")
    table.add_row("Estimated max records", str(result.estimated_max_count))
    console.print(table)


@app.command("list")
def list_records(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum records to show"),
    type_filter: str | None = typer.Option(None, "--type", "-t", help="Only show this type"),
) -> None:
    """List records, newest first."""
    try:
        manager, store = _open(ctx)
    except ActivityMonitorError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    records = store.get_all()
    if type_filter:
        records = [record for record in records if record.type == type_filter]
    if not records:
        print_info("No activity recorded.")
        return

    style = manager.preferences.display.timestamp_format
    table = Table(title=f"Activity ({len(records)} records)")
    table.add_column("When", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Message")
    table.add_column("Count", justify="right")
    table.add_column("Quantity", justify="right")
    for record in records[:limit]:
        table.add_row(
            format_timestamp(record.timestamp, style),
            record.type,
            record.message,
            str(record.count) if record.count > 1 else "",
            _format_quantity(record),
        )
    console.print(table)


@app.command("add")
def add(
    ctx: typer.Context,
    event_type: str = typer.Argument(..., help="Notification type, e.g. AddGP"),
    message: str = typer.Argument(..., help="Display text"),
    quantity: float | None = typer.Option(None, "--quantity", "-q", help="Amount"),
    media: str | None = typer.Option(None, "--media", help="Media URL or path"),
    custom_id: str | None = typer.Option(None, "--custom-id", help="Producer id"),
    source_kind: str | None = typer.Option(
        None, "--source-kind", help="Media reference kind (item, skill, static, ...)"
    ),
    source_id: str | None = typer.Option(None, "--source-id", help="Media source id or path"),
) -> None:
    """Capture one event into the log and save it."""
    try:
        manager, store = _open(ctx)
        capture = ActivityCapture(manager, media_codec=store.media_codec)
        capture.on_capture(store.add)
        record = capture.capture(
            RawEvent(
                type=event_type,
                message=message,
                quantity=quantity,
                media=media,
                custom_id=custom_id,
                source=source_id,
                source_kind=source_kind,
            )
        )
        store.close()
    except ActivityMonitorError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if record is None:
        print_warning(f"Event not captured: {event_type} is disabled or the event is invalid")
        raise typer.Exit(code=1)

    stored = store.get(record.id)
    if stored is None:
        records = store.get_all()
        if not records:
            print_warning(f"{record.type} record was evicted to fit the storage limit")
            return
        stored = records[0]
    if stored.count > 1:
        print_success(f"Grouped into existing {stored.type} record (count={stored.count})")
    else:
        print_success(f"Added {stored.type} record {stored.id}")


@app.command("clear")
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every record from the active backend."""
    if not yes:
        typer.confirm("Delete all activity records?", abort=True)
    try:
        _, store = _open(ctx)
        store.clear_all()
        store.close()
    except ActivityMonitorError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success("Cleared all activity records")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show every setting."""
    state = _state(ctx)
    manager = SettingsManager.from_data_dir(state.runtime.data_dir)

    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in manager.get_all().items():
        table.add_row(key, str(value))
    console.print(table)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Setting key, e.g. storage_mode"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change a setting.

    Changing storage_mode moves the current log to the new backend.
    """
    try:
        manager, store = _open(ctx)
        parsed = parse_setting_value(key, value)
        manager.set(key, parsed)
        store.close()
    except ActivityMonitorError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"{key} = {parsed}")


if __name__ == "__main__":
    app()
