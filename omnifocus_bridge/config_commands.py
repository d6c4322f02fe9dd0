"""`omnifocus-bridge config` sub-commands."""

from cyclopts import App

from omnifocus_bridge.config import SETTINGS, get_config

config_app = App(name="config", help="Show and change bridge settings")


def _scope(use_global: bool) -> str:
    return "global" if use_global else "local"


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Store a setting.

    Args:
        key: One of osascript.path, app.name, runner.timeout
        value: New value; runner.timeout takes seconds
        global_: Write ~/.omnifocus-bridge/config.yaml instead of the local file
    """
    try:
        stored = get_config(use_global=global_).set(key, value)
    except (KeyError, ValueError) as e:
        print(e.args[0])
        raise SystemExit(1) from e
    print(f"{key} = {stored} [{_scope(global_)}]")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Remove a setting from the local (or global) file."""
    if get_config(use_global=global_).unset(key):
        print(f"Removed {key} [{_scope(global_)}]")
    else:
        print(f"{key} was not set [{_scope(global_)}]")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Print the effective value of a setting and where it comes from."""
    config = get_config(use_global=global_)
    source = config.source(key)
    if source is None:
        print(f"{key} is not set")
        return
    print(f"{key} = {config.get(key)} [{source}]")


@config_app.command(name="list")
def list_settings(global_: bool = False) -> None:
    """Print every known setting with its effective value."""
    config = get_config(use_global=global_)
    for key, setting in SETTINGS.items():
        source = config.source(key)
        value = config.get(key) if source else "(unset)"
        print(f"{key} = {value} [{source or '-'}]  # {setting.help}")
