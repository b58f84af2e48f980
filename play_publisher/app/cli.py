"""Command-line interface for publishing an APK or App Bundle to Google Play."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Sequence

from ..core.errors import PublishError
from ..security import ChainedSecretProvider, EnvSecretProvider, MappingSecretProvider
from ..services import PublishingService, resolve_key_material, resolve_request
from ..settings import AppConfig, load_config
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

PROG = "play-publisher"
ENV_PREFIX = "PLAY_PUBLISHER_"
EXIT_OK = 0
EXIT_ARGUMENT_ERROR = 1


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that reports errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        sys.stderr.write(f"{self.prog}: error: {message}\n")
        self.print_usage(sys.stderr)
        self.exit(EXIT_ARGUMENT_ERROR)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"{PROG}: error: invalid configuration: {exc}\n")
        return EXIT_ARGUMENT_ERROR

    structured = False if args.log_plain else config.logging.structured
    configure_logging(level=config.logging.level, structured=structured)

    working_dir = config.paths.resolve_working_dir(args.working_dir)
    secrets = _secret_chain(args)

    try:
        request = resolve_request(
            application_name=args.application_name,
            package_name=args.package_name,
            artifact_path=args.artifact_path,
            tracks=args.tracks,
            working_dir=working_dir,
            mapping_path=args.deobfuscation_file,
            listings=args.listings,
            rollout_fraction=args.fraction,
        )
        key_material = resolve_key_material(
            secrets.find_secret("json_key"),
            working_dir=working_dir,
            service_account_email=secrets.find_secret("service_account_email"),
        )
    except PublishError as exc:
        sys.stderr.write(f"{PROG}: error: {exc}\n")
        parser.print_usage(sys.stderr)
        return exc.exit_code

    LOGGER.info(
        "Start deploy task for app %s",
        request.application_name,
        extra={
            "event": "cli.command",
            "package": request.package_name,
            "working_dir": str(working_dir),
            "dry_run": args.dry_run,
        },
    )

    service = _build_service(config, dry_run=args.dry_run)
    outcome = service.publish(request, key_material)
    if outcome.is_err():
        error = outcome.unwrap_err()
        LOGGER.error(
            "Publishing failed: %s",
            error,
            extra={
                "event": "cli.error",
                "stage": error.stage,
                "error_kind": error.kind.value,
                "details": error.details,
            },
        )
        return error.exit_code

    receipt = outcome.unwrap()
    LOGGER.info(
        "Published version code %s" if receipt.committed else "Dry run finished for version code %s",
        receipt.artifact.version_code,
        extra={
            "event": "cli.published",
            "edit_id": receipt.edit_id,
            "tracks": receipt.tracks,
            "committed": receipt.committed,
        },
    )
    return EXIT_OK


def _build_service(config: AppConfig, *, dry_run: bool) -> PublishingService:
    return PublishingService.from_config(config, dry_run=dry_run)


def _secret_chain(args: argparse.Namespace) -> ChainedSecretProvider:
    return ChainedSecretProvider(
        [
            MappingSecretProvider(
                {"json_key": args.json_key, "service_account_email": args.service_account_email}
            ),
            EnvSecretProvider(prefix=ENV_PREFIX),
        ]
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Upload an APK/AAB to Google Play and assign it to release tracks",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-help", "-h", "--help", action="help", help="Print usage")
    parser.add_argument(
        "-n",
        "-appName",
        dest="application_name",
        required=True,
        help='The name of your application, e.g. "MyCompany-Application/1.0"',
    )
    parser.add_argument(
        "-p", "-packageName", dest="package_name", required=True, help="The package name of the app"
    )
    parser.add_argument(
        "-k",
        "-jsonKey",
        dest="json_key",
        default=None,
        help=(
            "Service account key file (.json or .p12) or JSON content as text; "
            f"defaults to ${ENV_PREFIX}JSON_KEY"
        ),
    )
    parser.add_argument(
        "-e",
        "-serviceAccountEmail",
        dest="service_account_email",
        default=None,
        help="Service account email, required for .p12 keys",
    )
    parser.add_argument(
        "-a",
        "-apk",
        "-aab",
        dest="artifact_path",
        required=True,
        help="The file path to the apk/aab artifact",
    )
    parser.add_argument(
        "-df",
        "-deobfuscation",
        dest="deobfuscation_file",
        default=None,
        help="The file path to the deobfuscation (mapping) file of the artifact",
    )
    parser.add_argument(
        "-l",
        "-listings",
        dest="listings",
        default=None,
        help=(
            "Release notes as [BCP47 language code]::[file path], comma separated. "
            "Sample: en-US::notes/en.txt,de-DE::notes/de.txt"
        ),
    )
    parser.add_argument(
        "-t",
        "-tracks",
        dest="tracks",
        nargs="+",
        action="extend",
        metavar="TRACK",
        help=(
            'Track names for the artifact, space or comma separated: "internal", "alpha", '
            '"beta", "production", "rollout" or any custom track'
        ),
    )
    parser.add_argument(
        "-fraction",
        dest="fraction",
        default=None,
        help="The rollout fraction (0 <= fraction < 1), required for the rollout track",
    )
    parser.add_argument("--config", default=None, help="Path to configuration file")
    parser.add_argument(
        "--working-dir",
        dest="working_dir",
        default=None,
        help="Base directory for relative paths (defaults to the program's directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every step except the final commit",
    )
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    return parser


__all__ = ["main"]
