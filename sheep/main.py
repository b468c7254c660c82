import argparse
import sys
import time

from sheep.config import ConfigDocument, KernelCommandLine, ParameterResolver, RuntimeSettings, load_document
from sheep.config.settings import CONFIG_URL_PARAM, DELAY_PARAM, LOG_LEVEL_PARAM
from sheep.exceptions import SheepError
from sheep.logging import LoggerFactory, setup_logging
from sheep.pipeline import Provisioner
from sheep.plan import build_config

log = LoggerFactory.for_pipeline()


def abort(message):
    """Report a fatal error and stop the run with status 1."""
    log.error(message)
    print(f"ERROR : {message}", file=sys.stderr)
    sys.exit(1)


def load_configuration(cmdline, settings, config_location=None):
    """Fetch and parse the declarative document named on the command line."""
    if config_location is None:
        config_location = ParameterResolver(cmdline).resolve_mandatory(
            CONFIG_URL_PARAM, f"'{CONFIG_URL_PARAM}' must be set on the kernel command line"
        )
    log.info(f"Loading configuration from {config_location}")
    return load_document(str(config_location), settings.download_dir)


def provision(document: ConfigDocument, settings: RuntimeSettings, reboot=None):
    config = build_config(ParameterResolver(document), settings.efi_firmware_dir)
    return Provisioner(config, settings).run(reboot=reboot)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Unattended bare-metal OS provisioning")
    parser.add_argument("-c", "--config", help="Configuration document URL or path (overrides sheep.config)")
    parser.add_argument("-l", "--log-level", help="Log level (overrides sheep.log.level)")
    parser.add_argument("--no-reboot", action="store_true", help="Never reboot when provisioning completes")
    args = parser.parse_args(argv)

    cmdline = KernelCommandLine.load()
    settings = RuntimeSettings.from_env()
    setup_logging(args.log_level or cmdline.get(LOG_LEVEL_PARAM), log_file=settings.log_file)

    try:
        delay = ParameterResolver(cmdline).resolve_int(DELAY_PARAM, 0)
        if delay > 0:
            log.info(f"Waiting {delay}s before provisioning")
            time.sleep(delay)
        document = load_configuration(cmdline, settings, args.config)
        provision(document, settings, reboot=False if args.no_reboot else None)
    except SheepError as error:
        abort(str(error))
    return 0


if __name__ == "__main__":
    sys.exit(main())
