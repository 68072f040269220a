"""
Main entry point for the Trackium location agent.

Periodically detects the device location and relays it to the node.
"""

import signal
import sys
from typing import Callable, Optional

from . import __version__
from .core import Config, ConfigurationError, setup_logger
from .api import APIClient
from .providers import build_providers
from .services import (
    LocationResolver,
    LocalStore,
    DeliveryClient,
    ServiceLoop,
    build_strategies,
)


def prompt_for_device_id(input_func: Optional[Callable[[str], str]] = None) -> str:
    """
    Ask the operator for a device identifier.

    Raises:
        ConfigurationError: If no interactive input is available, the prompt is
            interrupted or the answer is empty
    """
    try:
        answer = (input_func or input)("Enter Device ID (e.g., TRACK-XXX-YYY): ")
    except EOFError:
        raise ConfigurationError(
            "No device ID provided and no interactive input available; "
            "set TRACKIUM_DEVICE_ID"
        )
    except KeyboardInterrupt:
        raise ConfigurationError("Device ID prompt interrupted")

    device_id = answer.strip()
    if not device_id:
        raise ConfigurationError("Device ID must not be empty")
    return device_id


class LocationServiceApp:
    """Main application for the location agent."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        config: Optional[Config] = None
    ):
        """
        Initialize application.

        Args:
            config_file: Path to configuration file
            config: Preloaded configuration (takes precedence over config_file)
        """
        self.config = config or Config(config_file)

        self.logger = setup_logger(
            log_file=self.config.log_file,
            log_level=self.config.log_level
        )
        self.logger.info("=" * 60)
        self.logger.info(f"Trackium Location Service {__version__}")
        self.logger.info("=" * 60)
        self.logger.info(f"Configuration: {self.config}")

        # Initialize components (will be set in initialize_components)
        self.provider_client: Optional[APIClient] = None
        self.node_client: Optional[APIClient] = None
        self.service_loop: Optional[ServiceLoop] = None

    def ensure_device_id(self, input_func: Optional[Callable[[str], str]] = None) -> str:
        """Return the configured device ID, prompting for it when absent."""
        if not self.config.device_id:
            self.logger.warning("No Device ID provided")
            self.config.device_id = prompt_for_device_id(input_func)
        self.logger.info(f"Device ID: {self.config.device_id}")
        return self.config.device_id

    def initialize_components(self) -> ServiceLoop:
        """Initialize all application components."""
        self.logger.info("Initializing components...")
        if not self.config.device_id:
            raise ConfigurationError("Device ID is required")

        self.provider_client = APIClient(
            timeout=self.config.api_timeout,
            max_retries=self.config.api_max_retries,
            verify_ssl=self.config.api_verify_ssl,
            logger=self.logger
        )
        self.node_client = APIClient(
            base_url=self.config.node_base_url,
            timeout=self.config.api_timeout,
            max_retries=self.config.api_max_retries,
            verify_ssl=self.config.api_verify_ssl,
            logger=self.logger
        )
        self.logger.info(f"Node: {self.config.node_base_url}")

        resolver = LocationResolver(
            build_providers(self.provider_client, self.config.provider_order, logger=self.logger),
            logger=self.logger
        )
        store = LocalStore(self.config.data_dir, logger=self.logger)
        delivery = DeliveryClient(
            store,
            build_strategies(self.node_client, self.config.delivery_strategies, logger=self.logger),
            logger=self.logger
        )

        self.service_loop = ServiceLoop(
            device_id=self.config.device_id,
            resolver=resolver,
            store=store,
            delivery=delivery,
            interval_seconds=self.config.update_interval_seconds,
            logger=self.logger
        )

        self.logger.info("All components initialized successfully")
        return self.service_loop

    def install_signal_handlers(self) -> None:
        """Stop the loop gracefully on SIGINT/SIGTERM."""
        def handle_signal(signum, frame):
            self.logger.info(f"Received signal {signal.Signals(signum).name}")
            if self.service_loop:
                self.service_loop.stop()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

    def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Run the service until stopped.

        Args:
            max_cycles: Stop after this many cycles (None runs forever)
        """
        try:
            self.ensure_device_id()
            loop = self.initialize_components()
            self.install_signal_handlers()

            self.logger.info("Service started successfully! Press Ctrl+C to stop")
            loop.run_forever(max_cycles=max_cycles)
            self.logger.info("Location service stopped")

        except Exception as e:
            self.logger.error(f"Application error: {e}", exc_info=True)
            raise

        finally:
            self.close()

    def close(self) -> None:
        """Release HTTP sessions."""
        for client in (self.provider_client, self.node_client):
            if client:
                client.close()


def main(argv=None):
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Trackium Location Service"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--device-id",
        type=str,
        default=None,
        help="Device identifier (overrides TRACKIUM_DEVICE_ID)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Update interval in milliseconds (overrides UPDATE_INTERVAL)"
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default=None,
        help="Delivery strategy: direct, keypair or a comma separated chain"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit"
    )

    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
        if args.device_id:
            config.set("device_id", args.device_id.strip())
        if args.interval is not None:
            config.set("processing.update_interval_ms", args.interval)
        if args.strategy:
            config.set("delivery.strategy", args.strategy)
        config.validate()
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    try:
        app = LocationServiceApp(config=config)
        app.run(max_cycles=1 if args.once else None)
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
