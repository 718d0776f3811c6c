#!/usr/bin/env python3
"""
Name: split
Description: split a file into pieces
Author: Rich Lafferty, rich@alcor.concordia.ca (Original Perl Author)
License: perl
"""

import sys
import os
import argparse
import io
import re
import stat
from contextlib import contextmanager
from enum import Enum

# --- Exit Codes ---
EX_SUCCESS = 0
EX_FAILURE = 1

DEFAULT_PREFIX = 'x'
DEFAULT_LINE_COUNT = 1000
BUFFER_SIZE = 64 * 1024


class SplitError(Exception):
    """Base class for failures while splitting. EOF is never one of these."""
    def __init__(self, message, filename=None, offset=None):
        super().__init__(message)
        self.filename = filename
        self.offset = offset

class InputReadError(SplitError):
    pass

class InputStatError(SplitError):
    pass

class OutputCreateError(SplitError):
    pass

class OutputWriteError(SplitError):
    pass


class Mode(Enum):
    LINES = 'lines'
    CHUNKS = 'chunks'
    BYTES = 'bytes'

class SplitPolicy:
    """
    One splitting strategy plus its count. `explicit` is False only for the
    policy used when the caller asked for nothing in particular.
    """
    def __init__(self, mode: Mode, count: int, explicit: bool = True):
        if not isinstance(count, int) or count <= 0:
            raise ValueError(f"{mode.value} count must be a positive integer, not {count!r}")
        self.mode = mode
        self.count = count
        self.explicit = explicit

    @classmethod
    def default(cls):
        return cls(Mode.LINES, DEFAULT_LINE_COUNT, explicit=False)

    def __eq__(self, other):
        if not isinstance(other, SplitPolicy):
            return NotImplemented
        return (self.mode, self.count, self.explicit) == (other.mode, other.count, other.explicit)

    def __hash__(self):
        return hash((self.mode, self.count, self.explicit))

    def __repr__(self):
        return f"SplitPolicy({self.mode}, {self.count}, explicit={self.explicit})"


def parse_size(size_str: str) -> int:
    """
    Parses a size string (e.g., '10k', '2m') and returns the number of bytes/lines.
    """
    match = re.match(r'^(\d+)([km]?)$', size_str.lower())
    if not match:
        raise ValueError(f"'{size_str}' is an invalid size format")

    value, multiplier_char = match.groups()
    value = int(value)

    if multiplier_char == 'k':
        value *= 1024
    elif multiplier_char == 'm':
        value *= 1024 * 1024

    if value == 0:
        raise ValueError(f"'{size_str}' is too small")
    return value

def next_suffix(suffix: str) -> str:
    """
    Returns the suffix that follows `suffix`, counting in base 26 with
    'a' as zero. 'zz' rolls over to 'aaa' instead of wrapping.
    """
    chars = list(suffix)
    for i in range(len(chars) - 1, -1, -1):
        if chars[i] != 'z':
            chars[i] = chr(ord(chars[i]) + 1)
            return ''.join(chars)
        chars[i] = 'a'
    # Every position carried out.
    return 'a' + ''.join(chars)

def generate_filenames(prefix: str, suffix: str = 'aa'):
    """
    An endless generator of output names: prefix+'aa', prefix+'ab', ...
    """
    while True:
        yield prefix + suffix
        suffix = next_suffix(suffix)


class Splitter:
    """
    Writes the pieces of one input stream into a directory. The stream is
    owned by the caller and is left open.
    """
    def __init__(self, input_stream, directory, prefix=DEFAULT_PREFIX):
        self.input_stream = input_stream
        self.directory = directory
        self.prefix = prefix
        self.offset = 0

    def run(self, policy: SplitPolicy) -> list:
        """Splits according to `policy` and returns the created paths in order."""
        if policy.mode is Mode.LINES:
            return self.split_by_lines(policy.count)
        if policy.mode is Mode.CHUNKS:
            return self.split_by_chunks(policy.count)
        if policy.mode is Mode.BYTES:
            return self.split_by_bytes(policy.count)
        raise ValueError(f"unknown split mode: {policy.mode!r}")

    def split_by_lines(self, line_count: int) -> list:
        """
        Puts `line_count` lines in each piece. A piece is only opened once a
        line is available for it, so empty input yields no files.
        """
        created = []
        names = generate_filenames(self.prefix)
        output_file = None
        lines_left = 0
        try:
            while True:
                line = self._readline()
                if not line:
                    break
                if output_file is None:
                    path = self._path(next(names))
                    output_file = self._create(path)
                    created.append(path)
                    lines_left = line_count
                self._write(output_file, path, line)
                lines_left -= 1
                if lines_left == 0:
                    self._close(output_file, path)
                    output_file = None
        except BaseException:
            if output_file is not None:
                self._abandon(output_file)
            raise
        if output_file is not None:
            self._close(output_file, path)
        return created

    def split_by_chunks(self, chunk_count: int) -> list:
        """
        Creates exactly `chunk_count` pieces. All but the last hold
        total // chunk_count bytes; the last takes whatever remains.
        """
        total = self._input_length()
        chunk_size = total // chunk_count
        created = []
        names = generate_filenames(self.prefix)
        for i in range(chunk_count):
            if i == chunk_count - 1:
                chunk_size = total - chunk_size * i
            path = self._path(next(names))
            with self._output(path) as output_file:
                created.append(path)
                self._copy(output_file, path, chunk_size)
        return created

    def split_by_bytes(self, byte_count: int) -> list:
        """
        Puts `byte_count` bytes in each piece; the last one may be short.
        Nothing is created for the read that finds the input exhausted.
        """
        created = []
        names = generate_filenames(self.prefix)
        while True:
            first_block = self._read(min(byte_count, BUFFER_SIZE))
            if not first_block:
                break
            path = self._path(next(names))
            with self._output(path) as output_file:
                created.append(path)
                self._write(output_file, path, first_block)
                self._copy(output_file, path, byte_count - len(first_block))
        return created

    # --- I/O helpers ---

    def _path(self, filename):
        return os.path.join(self.directory, filename)

    def _create(self, path):
        try:
            return open(path, 'wb')
        except OSError as e:
            raise OutputCreateError(f"can't create '{path}': {e.strerror or e}", path, self.offset) from e

    def _close(self, output_file, path):
        # Buffered data is flushed here, so a full disk can surface on close.
        try:
            output_file.close()
        except OSError as e:
            raise OutputWriteError(f"can't write '{path}': {e.strerror or e}", path, self.offset) from e

    def _abandon(self, output_file):
        # Only called while another error is propagating; that one is reported.
        try:
            output_file.close()
        except OSError:
            pass

    @contextmanager
    def _output(self, path):
        output_file = self._create(path)
        try:
            yield output_file
        except BaseException:
            self._abandon(output_file)
            raise
        self._close(output_file, path)

    def _write(self, output_file, path, data):
        try:
            output_file.write(data)
        except OSError as e:
            raise OutputWriteError(f"can't write '{path}': {e.strerror or e}", path, self.offset) from e

    def _readline(self):
        try:
            line = self.input_stream.readline()
        except OSError as e:
            raise InputReadError(f"read error at byte {self.offset}: {e.strerror or e}", offset=self.offset) from e
        self.offset += len(line)
        return line

    def _read(self, size):
        """Reads up to `size` bytes, retrying short reads until EOF."""
        blocks = []
        remaining = size
        while remaining > 0:
            try:
                block = self.input_stream.read(remaining)
            except OSError as e:
                raise InputReadError(f"read error at byte {self.offset}: {e.strerror or e}", offset=self.offset) from e
            if not block:
                break
            self.offset += len(block)
            blocks.append(block)
            remaining -= len(block)
        return b''.join(blocks)

    def _copy(self, output_file, path, size):
        """Copies up to `size` bytes from the input to `output_file`."""
        while size > 0:
            block = self._read(min(size, BUFFER_SIZE))
            if not block:
                break
            self._write(output_file, path, block)
            size -= len(block)

    def _input_length(self):
        """
        Returns the number of bytes between the current position and the
        end of the input. Pipes and terminals have no usable length.
        """
        stream = self.input_stream
        try:
            fd = stream.fileno()
        except (AttributeError, io.UnsupportedOperation):
            fd = None

        try:
            if fd is not None:
                st = os.fstat(fd)
                if not stat.S_ISREG(st.st_mode):
                    raise InputStatError("can't determine input size: not a regular file", offset=self.offset)
                return max(st.st_size - stream.tell(), 0)
            if getattr(stream, 'seekable', None) and stream.seekable():
                position = stream.tell()
                end = stream.seek(0, io.SEEK_END)
                stream.seek(position)
                return end - position
        except OSError as e:
            raise InputStatError(f"can't determine input size: {e.strerror or e}", offset=self.offset) from e
        raise InputStatError("can't determine input size: input is not seekable", offset=self.offset)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Split a file into pieces.",
        usage="%(prog)s [-l line_count[k|m] | -n chunk_count | -b byte_count[k|m]] [file [prefix]]"
    )
    # The splitting modes are mutually exclusive.
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument('-l', '--lines', help=f'Split by line count (default: {DEFAULT_LINE_COUNT}).')
    mode_group.add_argument('-n', '--chunks', help='Split into this many pieces of equal size; the last takes the remainder.')
    mode_group.add_argument('-b', '--bytes', help='Split by byte count (e.g., 10k, 2m).')

    parser.add_argument('file', nargs='?', default='-', help="Input file (default: stdin).")
    parser.add_argument('prefix', nargs='?', default=DEFAULT_PREFIX, help="Output file prefix (default: 'x').")
    return parser

def policy_from_args(args) -> SplitPolicy:
    """Maps the parsed flags onto a policy. No flag means the default policy."""
    if args.lines is not None:
        return SplitPolicy(Mode.LINES, parse_size(args.lines))
    if args.chunks is not None:
        if not re.match(r'^\d+$', args.chunks) or int(args.chunks) == 0:
            raise ValueError(f"'{args.chunks}' is an invalid chunk count")
        return SplitPolicy(Mode.CHUNKS, int(args.chunks))
    if args.bytes is not None:
        return SplitPolicy(Mode.BYTES, parse_size(args.bytes))
    return SplitPolicy.default()

def main(argv=None, directory=None):
    """Parses arguments, runs the splitter and returns the exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help exits 0; every usage error is a failure.
        return EX_SUCCESS if e.code == 0 else EX_FAILURE
    program_name = os.path.basename(sys.argv[0])

    try:
        policy = policy_from_args(args)
    except ValueError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        return EX_FAILURE

    # --- 1. Open Input Stream ---
    reading_stdin = args.file == '-'
    try:
        if reading_stdin:
            input_stream = sys.stdin.buffer # Always use binary mode for stdin
        else:
            if os.path.isdir(args.file):
                print(f"{program_name}: '{args.file}' is a directory", file=sys.stderr)
                return EX_FAILURE
            input_stream = open(args.file, 'rb')
    except OSError as e:
        print(f"{program_name}: Can't open '{args.file}': {e.strerror}", file=sys.stderr)
        return EX_FAILURE

    # --- 2. Run the Appropriate Splitting Logic ---
    splitter = Splitter(input_stream, directory or os.getcwd(), args.prefix)
    try:
        splitter.run(policy)
    except SplitError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        return EX_FAILURE
    finally:
        if not reading_stdin:
            input_stream.close()

    return EX_SUCCESS

def main_entry():
    sys.exit(main())

if __name__ == "__main__":
    main_entry()
