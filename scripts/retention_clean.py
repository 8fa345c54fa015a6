from __future__ import annotations

from mmcleaner.apps.cli.main import main


if __name__ == "__main__":
    raise SystemExit(main())
