"""Base game_settings.txt for a fresh server."""

import logging
from pathlib import Path

from tabgctl.core.errors import FileSystemError

logger = logging.getLogger(__name__)

GAME_SETTINGS_FILENAME = "game_settings.txt"
DEFAULT_SERVER_NAME = "DefaultServer"

_TEMPLATE = """\
// Allowed word list for name / description: https://github.com/landfallgames/tabg-word-list
// Name of the server
ServerName={name}
// Server Description
ServerDescription={description}
//Port To Use
Port=7777
// max players on server. Max being 253
MaxPlayers=70
//Use Relay
Relay=true
// server wide auto teaming
AutoTeam=false
//Password
Password={password}
// 0.0 - 1.0 percentage of cars to spawn. 0 being 0% and 1 being 100%.
CarSpawnRate=1.0

// Will start match with fewer then PlayersToStart if waited longer then ForceStartTime
UseTimedForceStart=true

// Seconds until force start the countdown
ForceStartTime=200.0

// Players needed to start the force start timer
MinPlayersToForceStart=2

// Players to start countdown
PlayersToStart=2

// Seconds it takes to start the game after Players have joined or force start triggered
Countdown=20.0

// enable or disable the respawn minigame.
AllowRespawnMinigame=true

// SQUAD, DUO or SOLO
TeamMode=SQUAD

// Ehm..  Have fun
GameMode=BattleRoyale
//Leave This To False
AntiCheat=false
"""


def sanitize_server_name(raw: str) -> str:
    """Reduce a server name to the characters the game accepts.

    Keeps letters, digits, spaces, '-' and '_'. Falls back to
    DEFAULT_SERVER_NAME when nothing usable remains.
    """
    cleaned = "".join(c for c in raw if c.isalnum() or c in " -_").strip()
    if not cleaned:
        logger.info("Server name %r is empty after sanitizing, using %s", raw, DEFAULT_SERVER_NAME)
        return DEFAULT_SERVER_NAME
    if cleaned != raw:
        logger.info("Sanitized server name %r -> %r", raw, cleaned)
    return cleaned


def render_game_settings(name: str, description: str, password: str) -> str:
    """Render the full settings template.

    The name is sanitized here; description and password are written as given.
    """
    return _TEMPLATE.format(
        name=sanitize_server_name(name),
        description=description,
        password=password,
    )


def write_game_settings(server_dir: Path, name: str, description: str, password: str) -> Path:
    """Write game_settings.txt into the server root, replacing any existing file.

    Raises:
        FileSystemError: If the file cannot be written.
    """
    path = server_dir / GAME_SETTINGS_FILENAME
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(render_game_settings(name, description, password))
    except OSError as e:
        raise FileSystemError(f"Failed to write {path}: {e}") from e
    logger.info("Wrote %s", path)
    return path
