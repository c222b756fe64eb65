"""Binary persistence of DataFrames.

DataFrames are stored in the Arrow IPC stream format:
a schema, with the ordered names and types of the columns,
followed by the record batches with the values. The validity
bitmap of each Arrow column is the missing mask of the Series,
so missing values survive the round trip::

    >>> from tabulon import DataFrame
    >>> df = DataFrame({"id": [1, 2, 3], "val": [10.5, None, 30.0]})
    >>> decode(encode(df)) == df
    True

Compression is applied to the whole encoded stream, after
encoding and before writing, and removed before decoding.
Any codec supported by Arrow can be used:
``gzip``, ``bz2``, ``lz4``, ``zstd`` and ``brotli``::

    >>> decode(encode(df, compression="zstd"), compression="zstd") == df
    True

Parquet is supported too, when the data has to be read by other tools.
"""

import logging

import pyarrow as pa
import pyarrow.ipc
import pyarrow.parquet

from ..config import VALID_COMPRESSIONS, get_engine_defaults
from ..dataframe import DataFrame

__all__ = (
    "encode",
    "decode",
    "save",
    "load",
    "load_table",
    "read_parquet",
    "read_parquet_table",
    "write_parquet",
)

log = logging.getLogger(__name__)


def _codec(compression: str | None) -> str | None:
    if compression is None or compression == "none":
        return None
    if compression not in VALID_COMPRESSIONS:
        raise ValueError(
            f"Unsupported compression {compression}, expected one of {sorted(VALID_COMPRESSIONS)}"
        )
    if not pa.Codec.is_available(compression):
        raise ValueError(f"Compression {compression} is not available in this pyarrow build")
    return compression


def _write_stream(table: pa.Table, sink: pa.NativeFile, compression: str | None) -> None:
    stream = sink
    if compression is not None:
        stream = pa.CompressedOutputStream(sink, compression)
    with pa.ipc.new_stream(stream, table.schema) as writer:
        writer.write_table(table)
    if compression is not None:
        # Flushes the compressed data to the sink.
        stream.close()


def _read_stream(source: pa.NativeFile, compression: str | None) -> pa.Table:
    stream = source
    if compression is not None:
        stream = pa.CompressedInputStream(source, compression)
    with pa.ipc.open_stream(stream) as reader:
        return reader.read_all()


def encode(frame: DataFrame, compression: str | None = None) -> bytes:
    """Encode a DataFrame into bytes.

    :param frame: The DataFrame to encode.
    :param compression: Codec used to compress the encoded data,
                        no compression by default.
    """
    sink = pa.BufferOutputStream()
    _write_stream(frame.to_arrow(), sink, _codec(compression))
    data = sink.getvalue().to_pybytes()
    log.debug("Encoded %d rows in %d bytes (compression=%s)", frame.row_count, len(data), compression)
    return data


def decode(data: bytes, compression: str | None = None) -> DataFrame:
    """Decode a DataFrame encoded by :func:`encode`.

    :param data: The encoded bytes.
    :param compression: The codec the data was compressed with.
    """
    table = _read_stream(pa.BufferReader(data), _codec(compression))
    log.debug("Decoded %d rows from %d bytes", table.num_rows, len(data))
    return DataFrame.from_arrow(table)


def _file_codec(compression: str | None) -> str | None:
    return _codec(get_engine_defaults().compression if compression is None else compression)


def save(frame: DataFrame, filename: str, compression: str | None = None) -> None:
    """Save a DataFrame to a file.

    :param frame: The DataFrame to save.
    :param filename: The path of the file, it's overwritten if it exists.
    :param compression: Codec used to compress the file, read from
                        :mod:`tabulon.config` when omitted (``gzip`` by default).
                        Use ``"none"`` to disable compression.
    """
    with pa.OSFile(str(filename), "wb") as sink:
        _write_stream(frame.to_arrow(), sink, _file_codec(compression))
    log.debug("Saved %d rows to %s", frame.row_count, filename)


def load_table(filename: str, compression: str | None = None) -> pa.Table:
    """Read the data saved by :func:`save` as a :class:`pyarrow.Table`."""
    with pa.OSFile(str(filename), "rb") as source:
        return _read_stream(source, _file_codec(compression))


def load(filename: str, compression: str | None = None) -> DataFrame:
    """Load a DataFrame saved by :func:`save`.

    :param filename: The path of the file.
    :param compression: The codec the file was compressed with, read from
                        :mod:`tabulon.config` when omitted.
    """
    return DataFrame.from_arrow(load_table(filename, compression))


def write_parquet(frame: DataFrame, filename: str) -> None:
    """Write a DataFrame to a Parquet file."""
    pa.parquet.write_table(frame.to_arrow(), str(filename))


def read_parquet_table(filename: str) -> pa.Table:
    return pa.parquet.read_table(str(filename))


def read_parquet(filename: str) -> DataFrame:
    """Load a DataFrame from a Parquet file."""
    return DataFrame.from_arrow(read_parquet_table(filename))
