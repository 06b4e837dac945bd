from addonmux.interfaces.cli.cli import start

raise SystemExit(start())
