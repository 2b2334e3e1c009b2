"""Allow ``python -m miniguard``."""

from miniguard.main import main


raise SystemExit(main())
