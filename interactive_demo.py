"""
Interactive terminal front-end for the dungeon generator.
Generate dungeons on demand, or watch one being built step by step.
"""

import logging
import random
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render, render_legend
from dungeon import DungeonConfig, DungeonGenerator

logger = logging.getLogger(__name__)

WELCOME = """\
Welcome to the Rogue Dungeon Generator!

This demo showcases how the dungeon generation in the
original 1980 Rogue worked.

Press [G] to generate new dungeons.
Press [S] to generate a new dungeon step-by-step.
Press [Esc] or [Q] to quit the program.
"""


class InteractiveDemo:
    """Keyboard-driven dungeon viewer."""

    def __init__(self, generator: DungeonGenerator, seed: int | None = None) -> None:
        self.generator = generator
        self.console = Console()
        self.status_message = "Ready"
        self.last_seed: int | None = seed
        self.steps_taken = 0
        self._seed_source = random.Random()
        self._live: Live | None = None
        self._has_dungeon = False

    def generate_display(self, stepping: bool = False) -> Panel:
        """Build the panel for the current state: welcome screen or dungeon."""
        if not self._has_dungeon:
            return Panel(
                Text(WELCOME, justify="center"),
                title="ROGUE DUNGEON GENERATOR",
                border_style="green",
                width=self.generator.width + 4,
            )

        body = Text.from_ansi(render(self.generator.tiles))
        body.append("\n\n")
        body.append_text(Text.from_ansi(render_legend()))
        body.append("\n\n")

        if stepping:
            body.append(f"Step {self.steps_taken}. ", style="bold")
            body.append("Press any key to advance the dungeon generation.\n")
        else:
            body.append("Keys: ", style="bold cyan")
            body.append("[G] generate  [S] step-by-step  [R] repeat seed  [Q] quit\n")

        body.append("─" * 40 + "\n", style="dim")
        body.append("Status: ", style="bold")
        body.append(self.status_message)

        return Panel(
            body,
            title=f"Rogue Dungeon (seed {self.last_seed})",
            border_style="yellow",
            width=self.generator.width + 4,
        )

    def _advance_step(self) -> None:
        """Step hook: redraw the half-built dungeon and wait for a key."""
        self.steps_taken += 1
        if self._live is not None:
            self._live.update(self.generate_display(stepping=True))
        readchar.readkey()

    def new_dungeon(self, step_by_step: bool = False, seed: int | None = None) -> None:
        """Generate a dungeon from seed, or from a fresh random seed."""
        if seed is None:
            seed = self._seed_source.randrange(2**31)
        logger.info("New dungeon: seed=%d step_by_step=%s", seed, step_by_step)
        self.last_seed = seed
        self.steps_taken = 0
        self._has_dungeon = True

        self.generator.reseed(seed)
        self.generator.generate(step_by_step=step_by_step, step_hook=self._advance_step)

        gone = sum(1 for room in self.generator.rooms if room.is_gone)
        self.status_message = (
            f"Generated seed {seed}: {len(self.generator.rooms) - gone} rooms, "
            f"{gone} gone, {len(self.generator.corridors)} corridors, "
            f"{len(self.generator.monsters)} monsters"
        )
        if step_by_step:
            self.status_message += f" in {self.steps_taken} steps"

    def run(self) -> None:
        """Run the key loop until Esc or Q."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            self._live = live
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey()

                    if key == readchar.key.ESC or key.lower() == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() == "g":
                        self.new_dungeon()
                    elif key.lower() == "s":
                        self.new_dungeon(step_by_step=True)
                    elif key.lower() == "r":
                        if self.last_seed is None:
                            self.status_message = "No dungeon to repeat yet"
                        else:
                            self.new_dungeon(seed=self.last_seed)
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())
            finally:
                self._live = None


def main(config: DungeonConfig) -> None:
    """Run the interactive demo for the given dungeon parameters."""
    generator = DungeonGenerator.from_config(config)
    demo = InteractiveDemo(generator, seed=config.seed)
    demo.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "once":
        # No terminal to drive (e.g. running from an IDE): print a single dungeon
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

        generator = DungeonGenerator.from_config(DungeonConfig())
        print(render(generator.generate()))
        print()
        print(render_legend())
    else:
        if len(sys.argv) > 1 and sys.argv[1] == "debug":
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")
        main(DungeonConfig())
