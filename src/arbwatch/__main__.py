"""
Entry point for the dashboard client.

Usage:
    python -m arbwatch
    arbwatch  # if installed via pip
"""

import asyncio
import sys


def _install_uvloop() -> bool:
    """Use uvloop for the event loop when it is installed."""
    try:
        import uvloop
    except ImportError:
        return False

    uvloop.install()
    return True


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from arbwatch import __version__
    from arbwatch.config.settings import get_settings
    from arbwatch.core.dashboard import Dashboard

    # Print banner
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     ARBWATCH DASHBOARD v{__version__:<32}      ║
║                                                               ║
║     Cross-Exchange Arbitrage Monitor                          ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nSet the backend location in the environment or a .env file:")
        print("  API_URL=http://127.0.0.1:8000/api/v1")
        print("or")
        print("  API_ORIGIN=http://127.0.0.1:8000")
        return 1

    uvloop_enabled = settings.use_uvloop and _install_uvloop()

    # Print configuration summary
    print("Configuration:")
    print(f"  Backend:        {settings.base_url}")
    refresh = "auto" if settings.auto_refresh else "manual"
    print(f"  Feed poll:      {settings.spread_poll_interval:.0f}s ({refresh})")
    print(f"  Trade amount:   {settings.default_trade_amount_usdt:.2f} USDT")
    print(f"  Log level:      {settings.log_level}")
    print(f"  uvloop:         {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    # Run the dashboard
    async def run_dashboard() -> int:
        dashboard = Dashboard(settings)

        try:
            await dashboard.setup()
            await dashboard.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await dashboard.shutdown()

    return asyncio.run(run_dashboard())


if __name__ == "__main__":
    sys.exit(main())
