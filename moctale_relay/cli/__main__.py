"""Allow ``python -m moctale_relay.cli`` execution."""

from moctale_relay.cli.popup import main

main()
