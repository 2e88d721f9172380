import argparse
import logging
import sys
from typing import List, Optional, Tuple

import streamform
from streamform.transport import DEFAULT_TIMEOUT, HttpxTransport
from streamform.uploader import DEFAULT_CHUNK_SIZE


def parse_field(s: str) -> Tuple[str, str]:
    name, sep, value = s.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got {s!r}")
    return name, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamform",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Upload form fields and files as multipart/form-data",
    )
    parser.add_argument(
        "-X",
        "--method",
        default="POST",
        type=str.upper,
        choices=["POST", "PUT"],
        help="HTTP method",
    )
    parser.add_argument(
        "-F",
        "--field",
        dest="fields",
        action="append",
        default=[],
        type=parse_field,
        metavar="NAME=VALUE",
        help="Form field, may be repeated",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="files",
        action="append",
        default=[],
        metavar="PATH",
        help="File to upload, may be repeated",
    )
    parser.add_argument("--file-field", default="files", help="Form field name for files")
    parser.add_argument(
        "--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="File copy buffer size"
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Timeout in seconds")
    parser.add_argument(
        "--fail", action="store_true", help="Exit with 22 if the server returns an HTTP error"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    parser.add_argument("url", help="URL to upload to")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s"
        )

    try:
        fu = streamform.FormUploader(chunk_size=args.chunk_size)
        fu.add_fields(args.fields)
        if args.files:
            fu.add_files(args.file_field, *args.files)
        with HttpxTransport(timeout=args.timeout) as transport:
            r = fu.submit(args.method, args.url, transport)
    except streamform.StreamFormError as e:
        print(f"Error uploading to {args.url}: {e}", file=sys.stderr)
        return 1

    print(r.text)
    if args.fail and r.status_code >= 400:
        return 22
    return 0


if __name__ == "__main__":
    sys.exit(main())
