"""Example: console player for one audio file (space/enter toggles, q quits)."""

import sys
import threading
from pathlib import Path

from tonearm import AudioPlayer, DeviceUnavailableError, PlayerView

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python play_file.py <path_to_audio_file>")
        sys.exit(1)

    path = Path(sys.argv[1]).resolve()

    player = AudioPlayer()
    try:
        player.start()
    except DeviceUnavailableError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not player.adapter.accepts(path):
        print(f"Warning: {path.suffix} is not in {player.config.allowed_extensions}")

    quit_event = threading.Event()
    toggle_requested = threading.Event()

    def read_keys():
        # Input is only queued here; the redraw loop applies it
        for line in sys.stdin:
            if line.strip().lower() == "q":
                break
            toggle_requested.set()
        quit_event.set()

    def apply_input() -> None:
        if toggle_requested.is_set():
            toggle_requested.clear()
            player.toggle()

    def draw(view: PlayerView) -> None:
        line = (
            f"\r{view.artist_label} - {view.title_label} "
            f"[{view.container_label}, {view.bitrate_label}] "
            f"{view.play_button_label}  {view.time_label} ({view.progress:.0%})"
        )
        if view.error_message:
            line += f"  {view.error_message}"
        print(line, end="", flush=True)

    try:
        if not player.open(path):
            print(f"Error: {player.view().error_message}")
            sys.exit(1)
        print("Press Enter to play/pause, q + Enter to quit.")
        threading.Thread(target=read_keys, daemon=True).start()
        player.adapter.run(draw, should_stop=quit_event.is_set, handle_input=apply_input)
    except KeyboardInterrupt:
        pass
    finally:
        print()
        player.shutdown()
