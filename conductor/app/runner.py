"""
Command-line session simulator for Conductor.

Runs a complete listening session against the SimulatedTransport on a
simulated timeline: the runtime clock is ticked by this driver loop, a
scripted listener skips tracks and nudges the volume, and the queue learns
from the outcomes. Every selection is logged as it starts
playing; at the end the learned weights and listener metrics are printed.

Example:
    ```bash
    # Probability-driven session over the built-in demo playlist
    python -m conductor --steps 30 --seed 7

    # Sequential, repeating, shuffled playback of a JSON playlist
    python -m conductor --playlist tracks.json --sequential --repeat --shuffle
    ```
"""

import argparse
import json
import logging
import logging.handlers
import random
import sys
from pathlib import Path
from typing import List, Optional

from conductor.app.config import PlayerConfig
from conductor.broadcast_core.events import PlayerEvent
from conductor.broadcast_core.player_engine import PlaybackError, PlayerEngine
from conductor.broadcast_core.queue_manager import QueueManager
from conductor.clock.runtime_clock import RuntimeClock
from conductor.clock.simulated_time import SimulatedTime
from conductor.models.playback_state import PlaybackState
from conductor.models.track import Playlist, Track
from conductor.outputs.base_transport import TransportError
from conductor.outputs.simulated_transport import SimulatedTransport
from conductor.state.interaction_tracker import InteractionTracker

logger = logging.getLogger(__name__)

DEMO_TRACKS = [
    {"id": "t01", "title": "Morning Static", "artist": "The Relays", "duration": 184, "url": "sim://t01"},
    {"id": "t02", "title": "Long Wave", "artist": "Carrier", "duration": 241, "url": "sim://t02"},
    {"id": "t03", "title": "Night Drive", "artist": "Sidebands", "duration": 203, "url": "sim://t03"},
    {"id": "t04", "title": "Low Battery", "artist": "Carrier", "duration": 157, "url": "sim://t04"},
    {"id": "t05", "title": "Dial Tone", "artist": "The Relays", "duration": 198, "url": "sim://t05"},
    {"id": "t06", "title": "Skywave", "artist": "Ionosphere", "duration": 266, "url": "sim://t06"},
    {"id": "t07", "title": "Repeater", "artist": "Sidebands", "duration": 175, "url": "sim://t07"},
    {"id": "t08", "title": "Dead Air", "artist": "Ionosphere", "duration": 221, "url": "sim://t08"},
]


class Colors:
    """ANSI color codes for interactive console output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'


class ColoredFormatter(logging.Formatter):
    """
    Console formatter with colors per log level.

    In interactive mode only the message is shown; "Playing:" lines get a
    play marker so track changes stand out.
    """

    COLORS = {
        'DEBUG': Colors.DIM + Colors.WHITE,
        'INFO': Colors.CYAN,
        'WARNING': Colors.YELLOW,
        'ERROR': Colors.RED,
        'CRITICAL': Colors.BOLD + Colors.RED,
    }

    def __init__(self, *args, interactive: bool = True, **kwargs):
        if 'fmt' not in kwargs:
            kwargs['fmt'] = '%(message)s'
        super().__init__(*args, **kwargs)
        self._is_interactive = interactive

    def format(self, record):
        if not self._is_interactive:
            return super().format(record)

        msg = record.getMessage()
        levelname = record.levelname
        if levelname == 'INFO' and 'Playing:' in msg:
            track_name = msg.split('Playing: ', 1)[1]
            return f"{Colors.GREEN}▶ {Colors.RESET}{Colors.BOLD}{track_name}{Colors.RESET}"
        if levelname == 'WARNING':
            return f"{Colors.YELLOW}⚠ {msg}{Colors.RESET}"
        if levelname in ('ERROR', 'CRITICAL'):
            return f"{Colors.RED}✗ {msg}{Colors.RESET}"
        if levelname == 'INFO':
            return msg
        return f"{self.COLORS.get(levelname, '')}{levelname}{Colors.RESET} {msg}"


def setup_logging(interactive: bool = False, log_file: Optional[Path] = None, level: str = "INFO") -> None:
    """
    Configure logging for the simulator.

    Args:
        interactive: Use the colored message-only console format
        log_file: Optional log file (rotates at 10MB, keeps 5 backups)
        level: Root log level name
    """
    handlers: List[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if interactive:
        console_handler.setFormatter(ColoredFormatter(interactive=True))
    else:
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    handlers.append(console_handler)

    logging.basicConfig(level=getattr(logging, level), handlers=handlers, force=True)


def load_playlist(path: Optional[Path]) -> Playlist:
    """
    Load a playlist from a JSON file (a list of track objects), or the demo playlist.

    Raises:
        ValueError: If the file is not a JSON list of valid tracks
    """
    if path is None:
        return Playlist.from_dicts("demo", "Demo Playlist", DEMO_TRACKS)

    with open(path, "r", encoding="utf-8") as f:
        items = json.load(f)
    if not isinstance(items, list):
        raise ValueError(f"Playlist file must contain a JSON list: {path}")
    return Playlist.from_dicts(path.stem, path.stem, items)


class ScriptedListener:
    """
    Simulated listener behavior for one session.

    For each new track decides up front whether (and where) it will be
    skipped and whether the volume gets nudged.
    """

    def __init__(self, rng: random.Random, skip_chance: float, volume_chance: float = 0.2):
        self._rng = rng
        self.skip_chance = skip_chance
        self.volume_chance = volume_chance
        self.skip_at: Optional[float] = None
        self.nudge_at: Optional[float] = None

    def plan(self, track: Track) -> None:
        self.skip_at = None
        self.nudge_at = None
        if self._rng.random() < self.skip_chance:
            self.skip_at = track.duration * self._rng.uniform(0.05, 0.6)
        if self._rng.random() < self.volume_chance:
            self.nudge_at = track.duration * self._rng.uniform(0.0, 0.5)

    def next_volume(self, current: float) -> float:
        return max(0.0, min(1.0, current + self._rng.choice((-0.1, 0.1))))


def run_session(
    playlist: Playlist,
    config: PlayerConfig,
    steps: int,
    skip_chance: float,
    step_seconds: float,
) -> PlayerEngine:
    """
    Run a simulated listening session.

    Args:
        playlist: Tracks to play
        config: Player configuration (modes, seed, time scale)
        steps: Number of track changes to simulate
        skip_chance: Probability that the listener skips a track
        step_seconds: Simulated seconds per driver iteration

    Returns:
        The PlayerEngine after the session, for inspection

    Raises:
        PlaybackError: If the queue has nothing to play
        TransportError: If the transport fails
    """
    core_rng = random.Random(config.seed)
    listener_rng = random.Random(None if config.seed is None else config.seed + 1)
    sim_time = SimulatedTime()

    queue = QueueManager(rng=core_rng)
    queue.set_playlist(playlist)
    queue.set_probability_mode(config.probability_mode)
    queue.set_shuffle(config.shuffle)
    queue.set_repeat(config.repeat)

    clock = RuntimeClock(time_source=sim_time.monotonic)
    clock.set_time_scale(config.time_scale)

    transport = SimulatedTransport(durations={track.url: track.duration for track in playlist.tracks})
    player = PlayerEngine(
        transport,
        queue_manager=queue,
        tracker=InteractionTracker(clock=sim_time.now),
        clock=clock,
    )

    listener = ScriptedListener(listener_rng, skip_chance)
    changes: List[str] = []

    def on_track_change(track: Track) -> None:
        changes.append(track.id)
        listener.plan(track)

    player.events.subscribe(PlayerEvent.TRACK_CHANGE, on_track_change)

    if player.next() is None:
        raise PlaybackError("Queue produced no first track")

    while len(changes) <= steps and player.get_state() != PlaybackState.STOPPED:
        sim_time.advance(step_seconds)
        player.tick()
        position = player.get_current_time()
        if listener.nudge_at is not None and position >= listener.nudge_at:
            listener.nudge_at = None
            player.set_volume(listener.next_volume(player.get_volume()))
        if listener.skip_at is not None and position >= listener.skip_at:
            listener.skip_at = None
            player.next()
            continue
        transport.advance(step_seconds)

    player.stop()
    return player


def print_summary(player: PlayerEngine, interactive: bool) -> None:
    """Print the learned weights and the listener metrics."""
    bold = Colors.BOLD if interactive else ""
    reset = Colors.RESET if interactive else ""

    engine = player.queue_manager.get_probability_engine()
    weights = engine.get_track_weights()
    state = player.get_runtime_state()
    metrics = state.context.metrics

    print(f"\n{bold}Learned weights{reset}")
    for track_id, weight in sorted(weights.items(), key=lambda item: item[1], reverse=True):
        print(f"  {track_id:<12} {weight:6.3f}")

    print(f"\n{bold}Listener{reset}")
    print(f"  energy={state.energy:.3f} flow={state.flow:.3f} skip_rate={metrics.skip_rate:.2f}")
    print(f"  average_listen={metrics.average_listen_duration:.2f} density={metrics.interaction_density:.2f}")
    print(f"  runtime={state.runtime_time:.1f}s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conductor",
        description="Simulate a probability-driven listening session",
    )
    parser.add_argument("--playlist", type=Path, default=None, help="JSON file with a list of tracks")
    parser.add_argument("--steps", type=int, default=20, help="Number of track changes to simulate")
    parser.add_argument("--skip-chance", type=float, default=0.3, help="Chance the listener skips a track")
    parser.add_argument("--step-seconds", type=float, default=None,
                        help="Simulated seconds per driver tick (default: tick interval from config)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible sessions")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--probability", dest="probability_mode", action="store_true", default=None,
                      help="Select tracks from the probability field")
    mode.add_argument("--sequential", dest="probability_mode", action="store_false",
                      help="Play tracks in queue order")
    parser.add_argument("--shuffle", action="store_true", default=None, help="Shuffle queue order")
    parser.add_argument("--repeat", action="store_true", default=None, help="Wrap around at the end of the queue")
    parser.add_argument("--interactive", "-i", action="store_true", help="Colored console output")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the session simulator.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        config = PlayerConfig.load_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # CLI arguments override environment
    if args.seed is not None:
        config.seed = args.seed
    if args.probability_mode is not None:
        config.probability_mode = args.probability_mode
    if args.shuffle is not None:
        config.shuffle = args.shuffle
    if args.repeat is not None:
        config.repeat = args.repeat
    if args.log_file is not None:
        config.log_file = args.log_file

    setup_logging(interactive=args.interactive, log_file=config.log_file, level=config.log_level)

    if args.steps <= 0:
        logger.error("--steps must be positive")
        return 2
    if not 0.0 <= args.skip_chance <= 1.0:
        logger.error("--skip-chance must be between 0 and 1")
        return 2
    step_seconds = args.step_seconds if args.step_seconds is not None else config.tick_interval_sec
    if step_seconds <= 0:
        logger.error("--step-seconds must be positive")
        return 2

    try:
        playlist = load_playlist(args.playlist)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load playlist: {e}")
        return 1

    logger.info(
        f"Session: {playlist.get_track_count()} tracks, "
        f"{'probability' if config.probability_mode else 'sequential'} mode, "
        f"shuffle={config.shuffle}, repeat={config.repeat}, seed={config.seed}"
    )

    try:
        player = run_session(playlist, config, args.steps, args.skip_chance, step_seconds)
    except (PlaybackError, TransportError) as e:
        logger.error(f"Session failed: {e}")
        return 1

    print_summary(player, args.interactive)
    return 0
