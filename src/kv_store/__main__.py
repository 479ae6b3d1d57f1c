"""Allow ``python -m kv_store``."""

from kv_store.adapters.inbound.cli import main

raise SystemExit(main())
