# mcraw

Building blocks for working with MotionCam raw video recordings in Python:
decode compressed raw Bayer frame payloads (current and legacy
compression), write frames as uncompressed 16-bit CFA DNG files, write
audio samples as 16-bit PCM WAV, and manage the `.mcraw` files in a folder.

The package has no dependencies outside the standard library.

## Install

    pip install .

## Decoding frame payloads

```python
from mcraw.raw import decode, read_metadata_header
from mcraw.legacy import decode_legacy

pixels = decode(payload, width, height)          # compression type 7
pixels = decode_legacy(payload, width, height)   # compression type 6
```

Both return an `array("H")` of `width * height` unsigned 16-bit values.
`read_metadata_header(payload)` returns the encoded width, encoded height
and the two metadata section offsets of a type 7 payload, and
`mcraw.legacy.padded_width(width)` rounds a width up to the 32 pixel strips
the legacy format uses. Malformed payloads raise `mcraw.raw.RawDecodeError`
(a `ValueError`).

## Writing DNG files

```python
from mcraw.dngmeta import write_dng

frame_meta = {"width": 4032, "height": 3024, "asShotNeutral": [0.5, 1.0, 0.6]}
container_meta = {"blackLevel": [64], "whiteLevel": 1023, "sensorArrangment": "rggb"}
write_dng("frame_000000.dng", pixels, frame_meta, container_meta)
```

`write_dng` accepts pixels as a 16-bit `array` or as little-endian bytes,
reads dimensions and white balance from the frame metadata and black/white
levels, the sensor arrangement (`sensorArrangement` or `sensorArrangment`,
default `BGGR`) and colour/forward matrices from the container metadata.
Missing or malformed matrices fall back to the identity.

Lower-level pieces in `mcraw.dngmeta`:

- `cfa_pattern(arrangement)` maps `RGGB`, `BGGR`, `GRBG`, `GBRG` (any case)
  to a DNG CFA pattern.
- `normalize_black_level(values)` turns a list of levels into four rounded,
  clamped 16-bit values.
- `matrix_or_identity(value)` returns nine numbers or the identity matrix.
- `dng_image_from_metadata(...)` builds a `mcraw.dng.DngImage` without writing it.

`mcraw.dng.DngImage` is a frozen dataclass describing one image; its
`to_bytes()` returns the file contents and `write(path)` saves it. Invalid
input raises `mcraw.dng.DngError` (a `ValueError`).

## Writing audio

```python
from mcraw.audio import write_wav

chunks = [(timestamp_ns, [l0, r0, l1, r1, ...]), ...]
frames = write_wav("audio.wav", 48000, 2, chunks)
```

`interleave_chunks(chunks, num_channels)` splits interleaved mono or stereo
samples into per-channel lists.

## Managing recordings

- `mcraw.playlist.scan_playlist(folder)` lists the `.mcraw` files directly in
  a folder, sorted; `anchor_index(files, anchor)` finds a file's position
  (0 when absent); `index_after_removal(count, index)` gives the position to
  show after a removal, or `None` when nothing is left.
- `mcraw.trash.soft_delete(path)` moves a file into a `_deleted_mcraw_files_`
  folder beside it, renaming to `name_(n).ext` rather than overwriting, and
  returns the new path.
- `mcraw.motioncam_fs.send_to_motioncam_fs(paths, executable=None)` starts
  the external `motioncam-fs` program in the background with `-f <path>` for
  each recording and returns `(started, failed)`. Without `executable` it is
  looked for next to the running program and then on `PATH`
  (`find_motioncam_fs`); `build_command` returns the argument list used.

## What this package does not do

It does not open `.mcraw` container files: reading the container index,
frame timestamps, metadata, payloads and audio chunks out of a recording is
left to the caller, who passes payloads and metadata to the functions above.
There is no command-line program.