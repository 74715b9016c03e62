"""CLI entry point: `chunkmod --chunk NAME=FILE[,FILE...] [--dep CHUNK:DEP]` or `python -m chunkmod ...`."""

import logging
import sys
from pathlib import Path


def _parse_chunk_spec(spec: str):
    from .utils.config import CHUNK_FILE_SEPARATOR, CHUNK_SPEC_SEPARATOR

    name, sep, files = spec.partition(CHUNK_SPEC_SEPARATOR)
    if not sep or not name:
        raise ValueError(f"invalid --chunk '{spec}', expected NAME{CHUNK_SPEC_SEPARATOR}FILE[{CHUNK_FILE_SEPARATOR}FILE...]")
    paths = [Path(f) for f in files.split(CHUNK_FILE_SEPARATOR) if f]
    return name, paths


def _parse_dependency(spec: str):
    from .utils.config import DEPENDENCY_SEPARATOR

    chunk, sep, dep = spec.partition(DEPENDENCY_SEPARATOR)
    if not sep or not chunk or not dep:
        raise ValueError(f"invalid --dep '{spec}', expected CHUNK{DEPENDENCY_SEPARATOR}DEPENDENCY")
    return chunk, dep


def main(argv=None) -> int:
    import argparse
    from .compiler.driver import ChunkCompiler, ChunkSource
    from .utils.io_utils import read_source_file, write_output_file

    parser = argparse.ArgumentParser(
        prog="chunkmod",
        description="Convert script chunks into ES modules with cross-chunk imports and exports.",
    )
    parser.add_argument("--chunk", action="append", default=[], metavar="NAME=FILE[,FILE...]",
                        help="Chunk name and its input files, in dependency order (repeatable)")
    parser.add_argument("--dep", action="append", default=[], metavar="CHUNK:DEP",
                        help="Declare that CHUNK depends on DEP (repeatable)")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Write NAME.js per chunk here instead of printing to stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.chunk:
        parser.error("at least one --chunk is required")

    try:
        specs = [_parse_chunk_spec(s) for s in args.chunk]
        deps = [_parse_dependency(d) for d in args.dep]
    except ValueError as e:
        parser.error(str(e))

    chunks = []
    for name, paths in specs:
        files = []
        for path in paths:
            try:
                files.append((str(path), read_source_file(path)))
            except OSError as e:
                sys.stderr.write(f"chunkmod: error: could not read file: {e}\n")
                return 1
        chunks.append(ChunkSource(name=name, files=files))

    by_name = {c.name: c for c in chunks}
    for chunk_name, dep_name in deps:
        if chunk_name not in by_name:
            sys.stderr.write(f"chunkmod: error: --dep names unknown chunk '{chunk_name}'\n")
            return 1
        by_name[chunk_name].dependencies.append(dep_name)

    result = ChunkCompiler().compile(chunks)

    for module_name, code in result.outputs.items():
        if args.output_dir is not None:
            write_output_file(args.output_dir / module_name, code)
        else:
            sys.stdout.write(f"// {module_name}\n{code}\n")

    if not result.success:
        if result.reporter is not None and result.reporter.has_errors():
            sys.stderr.write(result.reporter.format_all_errors() + "\n")
        else:
            sys.stderr.write("chunkmod: compilation failed\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
