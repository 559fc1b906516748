"""Launch the relay runtime from a source checkout."""

from __future__ import annotations

from mailrelay.cli import run


if __name__ == "__main__":
    run()
