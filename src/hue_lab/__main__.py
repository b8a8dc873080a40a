from __future__ import annotations

from hue_lab.cli import main


if __name__ == "__main__":
    main()
