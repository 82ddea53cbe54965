"""Allow `python -m sellerflow`."""

from sellerflow.cli import main

main()
