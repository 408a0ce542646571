"""Command-line entry point for the wallet proxy server."""

import argparse

from wallet_proxy.main import run_server


def main():
    """Run the wallet proxy server."""
    parser = argparse.ArgumentParser(description="Solana wallet + buys proxy")
    parser.add_argument("--port", type=int, help="Server port")
    args = parser.parse_args()

    run_server(port=args.port)


if __name__ == "__main__":
    main()
