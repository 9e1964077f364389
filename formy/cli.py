import argparse
import json
import sys

from formy import FormEncoder, FormError


def _field(kind):
    def parse(arg):
        name, sep, value = arg.partition("=")
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {arg!r}")
        if kind == "json":
            try:
                value = json.loads(value)
            except ValueError as e:
                raise argparse.ArgumentTypeError(f"invalid json for {name!r}: {e}")
        elif value.startswith("@"):
            return "file", name, value[1:]
        return kind, name, value

    return parse


def encode(fields, sink, boundary=None, detect_content_type=True) -> FormEncoder:
    form = FormEncoder(sink, boundary=boundary, detect_content_type=detect_content_type)
    for kind, name, value in fields:
        if kind == "file":
            form.write_file_path(name, value)
        elif kind == "json":
            form.write_json(name, value)
        else:
            form.write_string(name, value)
    form.close()
    return form


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="formy",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Build a multipart/form-data body, fields are given curl style",
    )
    parser.add_argument(
        "-F",
        "--form",
        dest="fields",
        action="append",
        type=_field("text"),
        metavar="NAME=VALUE",
        help="Text field, or a file upload with NAME=@PATH",
    )
    parser.add_argument(
        "--json",
        dest="fields",
        action="append",
        type=_field("json"),
        metavar="NAME=JSON",
        help="Field holding a JSON document",
    )
    parser.add_argument("--boundary", help="Use this boundary instead of a random one")
    parser.add_argument(
        "--no-detect",
        action="store_true",
        help="Send files as application/octet-stream instead of sniffing their type",
    )
    parser.add_argument("-o", "--output", default="-", help="Where to write the body")

    args = parser.parse_args(argv)
    fields = args.fields or []
    detect = not args.no_detect

    try:
        if args.output == "-":
            form = encode(fields, sys.stdout.buffer, args.boundary, detect)
            sys.stdout.buffer.flush()
        else:
            with open(args.output, "wb") as f:
                form = encode(fields, f, args.boundary, detect)
    except (FormError, OSError) as e:
        print(f"Error building form: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Content-Type: {form.content_type}", file=sys.stderr)


if __name__ == "__main__":
    main()
