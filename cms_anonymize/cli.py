"""
Command-line interface for the CMS anonymizer.

This module provides the CLI for rewriting the users and comments of a
datastore snapshot with fake data.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from cms_anonymize import __version__
from cms_anonymize.anonymizers.generators import parse_custom_fields
from cms_anonymize.config.config_manager import ConfigManager
from cms_anonymize.errors import AnonymizerError
from cms_anonymize.models import (
    AnnotationRunOptions, Config, GenerationContext, ProfileRunOptions, RunResult,
)
from cms_anonymize.processors.engine import AnonymizationEngine
from cms_anonymize.store.memory_store import MemoryStore
from cms_anonymize.utils import get_timestamp, parse_list

logger = logging.getLogger(__name__)


def setup_logging(config: dict) -> None:
    """
    Setup logging configuration.

    Args:
        config: Logging configuration dictionary
    """
    log_level = config.get('level') or 'WARNING'
    log_format = config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    log_file = config.get('file', None)

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.WARNING),
        format=log_format,
        filename=log_file
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by both subcommands."""
    parser.add_argument(
        '--skip-not-found',
        action='store_true',
        help='Warn and continue when an identifier does not exist'
    )

    parser.add_argument(
        '--site',
        help='Restrict the run to one site ID (multisite stores only)',
        default=None
    )

    parser.add_argument(
        '--ignore-empty-fields',
        action='store_true',
        help='Leave fields that are currently empty untouched'
    )

    # Fake data generation
    parser.add_argument(
        '--language',
        help='Faker locale used to generate data (e.g. fr_FR)',
        default=None
    )

    parser.add_argument(
        '--seed',
        type=int,
        help='Seed for reproducible fake data',
        default=None
    )

    parser.add_argument(
        '--custom-email-domains',
        help='Comma separated domains to use for fake emails',
        default=None
    )

    parser.add_argument(
        '--custom-fields',
        help='Extra fields to rewrite: name[::generator],...',
        default=None
    )

    parser.add_argument(
        '-y', '--yes',
        action='store_true',
        help='Do not ask for confirmation'
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv)

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='cms-anonymize',
        description='CMS Anonymizer - Replace the personal data of users and comments with fake data',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Rewrite every user except ID 1 and all administrators
  cms-anonymize --store site.yaml anonymize-users --keep=1 --keep-roles=administrator

  # Rewrite comments of two users only, writing the result elsewhere
  cms-anonymize --store site.yaml -o anon.yaml anonymize-comments --users=jdoe,12

  # Reproducible French data on site 3 of a multisite store
  cms-anonymize --store network.yaml anonymize-users --site=3 --language=fr_FR --seed=42
        '''
    )

    # Input/output arguments
    parser.add_argument(
        '--store',
        required=True,
        help='Datastore snapshot file (YAML or JSON)'
    )

    parser.add_argument(
        '-o', '--output',
        help='Output snapshot path (the store file is rewritten in place if not specified)',
        default=None
    )

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Path to custom configuration file (YAML)',
        default=None
    )

    # Output options
    parser.add_argument(
        '--backup',
        action='store_true',
        help='Create backup of the store file before anonymization'
    )

    parser.add_argument(
        '--no-audit',
        action='store_true',
        help='Disable audit log generation'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )

    # Verbosity
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'CMS Anonymizer v{__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='command')
    subparsers.required = True

    users = subparsers.add_parser(
        'anonymize-users',
        help='Rewrite user profiles (and their comments) with fake data'
    )
    users.add_argument(
        '--keep',
        help='Users to leave untouched: IDs, logins or emails, comma separated',
        default=None
    )
    users.add_argument(
        '--keep-roles',
        help='Roles whose users are left untouched, comma separated',
        default=None
    )
    users.add_argument(
        '--ignore-comment-authors',
        action='store_true',
        help='Do not rewrite the author fields of the users\' comments'
    )
    _add_common_options(users)

    comments = subparsers.add_parser(
        'anonymize-comments',
        help='Rewrite comments with fake data'
    )
    comments.add_argument(
        '--users',
        help='Only rewrite comments of these users (IDs, logins, emails; 0 for anonymous)',
        default=None
    )
    comments.add_argument(
        '--only-author-fields',
        action='store_true',
        help='Only rewrite the author fields'
    )
    comments.add_argument(
        '--except-author-fields',
        action='store_true',
        help='Rewrite everything but the author fields (wins over --only-author-fields)'
    )
    comments.add_argument(
        '--use-existing-user-data',
        action='store_true',
        help='Copy author name, email and URL from the owning user'
    )
    _add_common_options(comments)

    return parser.parse_args(argv)


def build_cli_overrides(args: argparse.Namespace) -> dict:
    """
    Build configuration overrides from CLI arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        Dictionary of configuration overrides
    """
    overrides = {}

    # Generation options
    generation_overrides = {}

    if args.language:
        generation_overrides['locale'] = args.language

    if args.seed is not None:
        generation_overrides['seed'] = args.seed

    if args.custom_email_domains:
        generation_overrides['custom_email_domains'] = parse_list(args.custom_email_domains)

    if args.custom_fields:
        generation_overrides['custom_fields'] = parse_custom_fields(args.custom_fields)

    if generation_overrides:
        overrides['generation'] = generation_overrides

    # Processing options
    processing_overrides = {}

    if args.no_audit:
        processing_overrides['create_audit_log'] = False

    if args.backup:
        processing_overrides['backup_original'] = True

    if args.no_progress:
        processing_overrides['show_progress'] = False

    if processing_overrides:
        overrides['processing'] = processing_overrides

    # Logging
    if args.verbose:
        overrides['logging'] = {'level': 'DEBUG'}

    return overrides


def validate_input(args: argparse.Namespace) -> bool:
    """
    Validate input arguments.

    Args:
        args: Parsed arguments

    Returns:
        True if valid, False otherwise
    """
    if not os.path.exists(args.store):
        print(f"Error: Store file does not exist: {args.store}", file=sys.stderr)
        return False

    if not os.path.isfile(args.store):
        print(f"Error: Store path is not a file: {args.store}", file=sys.stderr)
        return False

    if args.config and not os.path.isfile(args.config):
        print(f"Error: Configuration file does not exist: {args.config}", file=sys.stderr)
        return False

    return True


def format_table(rows: List[dict]) -> str:
    """
    Render rows of equal keys as an ASCII table.

    Args:
        rows: Rows to render

    Returns:
        Table text
    """
    headers = list(rows[0].keys())
    widths = [
        max(len(str(header)), *(len(str(row[header])) for row in rows))
        for header in headers
    ]
    border = '+' + '+'.join('-' * (width + 2) for width in widths) + '+'

    def line(values):
        cells = (f" {str(value):<{width}} " for value, width in zip(values, widths))
        return '|' + '|'.join(cells) + '|'

    lines = [border, line(headers), border]
    lines.extend(line(row[header] for header in headers) for row in rows)
    lines.append(border)
    return '\n'.join(lines)


def success_message(command: str, result: RunResult) -> str:
    """
    Build the final status line of a run.

    Args:
        command: Subcommand that ran
        result: Result of the run

    Returns:
        Success message
    """
    if command == 'anonymize-users':
        if result.site_id is not None:
            message = f"All users on site '{result.site_id}' have been rewritten."
        else:
            message = "All users have been rewritten."
        if result.excluded_ids:
            message += " except: '{}'".format(', '.join(str(i) for i in result.excluded_ids))
        return message

    if result.site_id is not None:
        return f"All comments on site '{result.site_id}' rewritten."
    return "All comments rewritten."


def print_results(command: str, result: RunResult) -> None:
    """
    Print processing results summary.

    Args:
        command: Subcommand that ran
        result: RunResult of the run
    """
    print(format_table([result.summary_row()]))

    if result.warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"  - {warning}")

    if result.errors:
        print("\nErrors:")
        for error in result.errors:
            print(f"  - {error}")

    print(f"\nSuccess: {success_message(command, result)}")
    logger.debug("Processing time: %.2fs", result.processing_time)


def write_audit_log(result: RunResult, output_path: str) -> str:
    """
    Write the audit log next to the output snapshot.

    Args:
        result: RunResult of the run
        output_path: Path of the written snapshot

    Returns:
        Path of the audit log
    """
    output = Path(output_path)
    audit_path = output.with_name(f"{output.stem}_audit.json")

    audit = result.to_dict()
    audit['generated_at'] = get_timestamp()
    audit['entries'] = [entry.to_dict() for entry in result.audit_entries]

    with open(audit_path, 'w', encoding='utf-8') as f:
        json.dump(audit, f, indent=2)

    logger.info("Audit log written to %s", audit_path)
    return str(audit_path)


def build_options(args: argparse.Namespace, generation: GenerationContext, config: Config):
    """
    Build the run options of the selected subcommand.

    Args:
        args: Parsed arguments
        generation: Generation context built from the configuration
        config: Loaded configuration

    Returns:
        ProfileRunOptions or AnnotationRunOptions
    """
    show_progress = bool(config.processing.get('show_progress', True))

    if args.command == 'anonymize-users':
        return ProfileRunOptions(
            keep=args.keep,
            keep_roles=args.keep_roles,
            skip_not_found=args.skip_not_found,
            site=args.site,
            ignore_empty_fields=args.ignore_empty_fields,
            update_annotations=not args.ignore_comment_authors,
            generation=generation,
            yes=args.yes,
            show_progress=show_progress,
        )

    return AnnotationRunOptions(
        users=args.users,
        only_author_fields=args.only_author_fields,
        except_author_fields=args.except_author_fields,
        use_existing_profile_data=args.use_existing_user_data,
        skip_not_found=args.skip_not_found,
        site=args.site,
        ignore_empty_fields=args.ignore_empty_fields,
        generation=generation,
        yes=args.yes,
        show_progress=show_progress,
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    # Parse arguments
    args = parse_args(argv)

    # Validate input
    if not validate_input(args):
        sys.exit(1)

    try:
        # Load configuration
        config_manager = ConfigManager.load(
            user_path=args.config,
            cli_overrides=build_cli_overrides(args)
        )

        config = config_manager.to_config_object()

        # Setup logging
        setup_logging(config.logging)

        processing = config.processing
        encoding = processing.get('encoding', 'utf-8')

        if processing.get('backup_original', False):
            backup_path = MemoryStore.backup(args.store)
            print(f"Backup written to {backup_path}")

        store = MemoryStore.load(
            args.store,
            encoding=encoding,
            password_salt=config.security.get('password_salt') or ''
        )
        engine = AnonymizationEngine(store)
        options = build_options(args, config_manager.generation_context(), config)

        if args.command == 'anonymize-users':
            result = engine.anonymize_profiles(options)
        else:
            result = engine.anonymize_annotations(options)

        # Only a completed run is written out
        output_path = args.output or args.store
        store.save(output_path, encoding=encoding)

        if processing.get('create_audit_log', True):
            write_audit_log(result, output_path)

        print_results(args.command, result)

    except AnonymizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)

    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
