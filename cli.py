#!/usr/bin/env python3
"""vaultbridge CLI - hot object storage and cold archive operations."""
import argparse
import logging
import sys
from pathlib import Path

from vaultbridge.errors import VaultBridgeError

logger = logging.getLogger(__name__)


def setup_logging(log_level: str):
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _hot_store():
    from vaultbridge.factory import make_hot_store
    return make_hot_store()


def _cold_store():
    from vaultbridge.factory import make_cold_store
    return make_cold_store()


def cmd_put(args):
    """Upload a local file to hot storage."""
    path = Path(args.file)
    name = args.name or path.name
    key = _hot_store().upload(args.category, name, path.read_bytes(), is_public=args.public)
    print(key)


def cmd_get(args):
    """Fetch an object to a file or stdout."""
    store = _hot_store()
    if args.output:
        store.fetch_to_path(args.key, args.output)
    else:
        sys.stdout.buffer.write(store.fetch(args.key))
        sys.stdout.buffer.flush()


def cmd_ls(args):
    """List objects under a prefix."""
    for key, etag in _hot_store().list(args.prefix).items():
        print(f"{key}\t{etag}")


def cmd_cp(args):
    """Copy an object to a new key."""
    print(_hot_store().copy(args.category, args.name, args.source_key))


def cmd_rm(args):
    """Delete an object."""
    _hot_store().delete(args.key)


def cmd_url(args):
    """Print the public URI of an object."""
    print(_hot_store().get_uri(args.key))


def cmd_archive(args):
    """Upload a local file to cold storage."""
    path = Path(args.file)
    description = args.description if args.description is not None else path.name
    with path.open('rb') as f:
        archive_id = _cold_store().archive_upload(description, f)
    print(archive_id)


def cmd_retrieve(args):
    """Start a retrieval job for an archive."""
    print(_cold_store().initiate_retrieval(args.archive_id))


def cmd_status(args):
    """Print the status of a retrieval job."""
    store = _cold_store()
    store.resume_job(args.job_id)
    print(store.poll_status(args.job_id).value)


def cmd_wait(args):
    """Poll a retrieval job until it finishes."""
    from vaultbridge.core.polling import wait_for_retrieval
    from vaultbridge.models import JobStatus

    store = _cold_store()
    store.resume_job(args.job_id)
    try:
        status = wait_for_retrieval(
            store,
            args.job_id,
            initial_delay=args.interval,
            max_delay=args.max_interval,
            timeout=args.timeout,
        )
    except KeyboardInterrupt:
        logger.info("Stopped waiting by user")
        return 1
    print(status.value)
    return 0 if status is JobStatus.SUCCEEDED else 1


def cmd_download(args):
    """Write the output of a succeeded job to a file."""
    store = _cold_store()
    store.resume_job(args.job_id)
    store.poll_status(args.job_id)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open('wb') as f:
        written = store.fetch_output_to(args.job_id, f)
    logger.info(f"Wrote {written} bytes to {output}")


def cmd_delete_archive(args):
    """Delete an archive."""
    print(_cold_store().delete(args.archive_id))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='vaultbridge - hot object storage and cold archives behind one client',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Store a file and print its key
  %(prog)s put images ./cat.png --public

  # Archive a file, then get it back
  %(prog)s archive ./backup.tar --description "nightly backup"
  %(prog)s retrieve ARCHIVE_ID
  %(prog)s wait JOB_ID --interval 300
  %(prog)s download JOB_ID --output ./backup.tar
"""
    )

    # Global options
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set the logging level (default: INFO)'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        required=True
    )

    # Hot storage
    put_parser = subparsers.add_parser('put', help='Upload a file to hot storage')
    put_parser.add_argument('category', help='Category, first segment of the key')
    put_parser.add_argument('file', help='Local file to upload')
    put_parser.add_argument('--name', help='Object name (default: the file name)')
    put_parser.add_argument('--public', action='store_true', help='Allow unauthenticated reads')
    put_parser.set_defaults(func=cmd_put)

    get_parser = subparsers.add_parser('get', help='Fetch an object')
    get_parser.add_argument('key', help='Storage key')
    get_parser.add_argument('--output', '-o', help='Write to this path instead of stdout')
    get_parser.set_defaults(func=cmd_get)

    ls_parser = subparsers.add_parser('ls', help='List objects')
    ls_parser.add_argument('prefix', nargs='?', default='', help='Key prefix (default: all)')
    ls_parser.set_defaults(func=cmd_ls)

    cp_parser = subparsers.add_parser('cp', help='Copy an object to a new key')
    cp_parser.add_argument('source_key', help='Existing storage key')
    cp_parser.add_argument('category', help='Destination category')
    cp_parser.add_argument('name', help='Destination name')
    cp_parser.set_defaults(func=cmd_cp)

    rm_parser = subparsers.add_parser('rm', help='Delete an object')
    rm_parser.add_argument('key', help='Storage key')
    rm_parser.set_defaults(func=cmd_rm)

    url_parser = subparsers.add_parser('url', help='Print the public URI of an object')
    url_parser.add_argument('key', help='Storage key')
    url_parser.set_defaults(func=cmd_url)

    # Cold storage
    archive_parser = subparsers.add_parser('archive', help='Upload a file to cold storage')
    archive_parser.add_argument('file', help='Local file to archive')
    archive_parser.add_argument('--description', help='Archive description (default: the file name)')
    archive_parser.set_defaults(func=cmd_archive)

    retrieve_parser = subparsers.add_parser('retrieve', help='Start a retrieval job')
    retrieve_parser.add_argument('archive_id', help='Archive ID')
    retrieve_parser.set_defaults(func=cmd_retrieve)

    status_parser = subparsers.add_parser('status', help='Show retrieval job status')
    status_parser.add_argument('job_id', help='Job ID')
    status_parser.set_defaults(func=cmd_status)

    wait_parser = subparsers.add_parser('wait', help='Wait for a retrieval job to finish')
    wait_parser.add_argument('job_id', help='Job ID')
    wait_parser.add_argument('--interval', type=float, default=60.0,
                             help='Seconds before the second poll (default: 60)')
    wait_parser.add_argument('--max-interval', type=float, default=900.0,
                             help='Longest delay between polls (default: 900)')
    wait_parser.add_argument('--timeout', type=float, help='Give up after this many seconds')
    wait_parser.set_defaults(func=cmd_wait)

    download_parser = subparsers.add_parser('download', help='Download the output of a finished job')
    download_parser.add_argument('job_id', help='Job ID')
    download_parser.add_argument('--output', '-o', required=True, help='Destination file')
    download_parser.set_defaults(func=cmd_download)

    delete_parser = subparsers.add_parser('delete-archive', help='Delete an archive')
    delete_parser.add_argument('archive_id', help='Archive ID')
    delete_parser.set_defaults(func=cmd_delete_archive)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        result = args.func(args)
    except VaultBridgeError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=args.log_level == 'DEBUG')
        return 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return result or 0


if __name__ == '__main__':
    sys.exit(main())
