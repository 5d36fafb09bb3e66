# atracio

Building blocks for ATRAC-style audio encoders and decoders, written in
Python on top of numpy.

## What is inside

- `atracio.pcm_engine`: `PcmBuffer`, a float32 sample buffer of shape
  (frames, channels), and `PcmEngine`, which fills its buffer from an
  optional reader function, calls a processing function on each `step`-frame
  slice (the step must divide the buffer size evenly, otherwise
  `ValueError`; a step larger than the buffer raises `PcmBufferTooSmall`),
  passes the buffer to an optional writer function and returns the running
  total of frames processed. `Processor` is the abstract source of such a
  processing function.
- `atracio.compressed_io`: the abstract interfaces `CompressedIO`,
  `CompressedInput` and `CompressedOutput` that compressed containers
  implement.
- `atracio.delay_buffer`: `DelayBuffer`, `n` rows of `2 * s` values whose
  second half moves into the first on `shift()`.
- `atracio.qmf`: `Qmf`, a two-band quadrature mirror filter bank with a
  48-tap prototype. `analysis(pcm)` returns `(lower, upper)` bands of half
  length; `synthesis(lower, upper)` merges them. Each keeps its own history
  between calls.
- `atracio.transient_detector`: `TransientDetector`, which high-pass filters
  a block, compares the energy of consecutive short blocks and reports
  whether a transient occurred (`detect`) and where (`last_transient_pos`);
  and `analyze_gain`, which returns the RMS or peak level of each segment of
  a signal.
- `atracio.gain_processor`: `GainProcessor`, configured with `GainParams`
  (gain tables and sizes supplied by the caller), turns lists of `GainPoint`
  into a demodulation function `(cur, prev) -> output` and a modulation
  function `(buf_cur, buf_next) -> (cur, next)` that returns modulated
  copies. `modulate` returns `None` for an empty list of points.
- `atracio.rm`: `RmWriter` and `create_rm_output`, which write a RealMedia
  (ra5) container holding scrambled ATRAC3 frames, grouped three to a
  packet. `scramble_data` applies the frame scrambling on its own.
- `atracio.pcm_io`: PCM providers. `WavFileProvider` reads PCM WAV files of
  8, 16, 24 or 32 bits and writes 16-bit WAV files; `AuStreamProvider` reads
  and writes 16-bit big-endian AU streams (reading accepts only 44100 Hz,
  mono or stereo). `open_read_provider` and `open_write_provider` choose a
  provider from the path: `"-"` means an AU stream on stdin or stdout, a
  `.au` extension an AU file, anything else a WAV file. Writing AIFF or raw
  PCM is refused with `ValueError`.
- `atracio.wav`: `Wav`, a PCM file opened for reading (constructor) or
  writing (`Wav.open_write`), which hands out the reader and writer
  functions used by `PcmEngine`. The reader zero-pads a short final block
  and raises `NoDataToRead` when nothing is left.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Examples

Split a block of mono PCM into two bands and merge it back:

    import numpy as np
    from atracio.qmf import Qmf

    analysis = Qmf(512)
    synthesis = Qmf(512)
    pcm = np.sin(np.arange(512) / 10.0)
    lower, upper = analysis.analysis(pcm)
    restored = synthesis.synthesis(lower, upper)

Run a WAV file through a processing function, 512 frames at a time:

    from atracio.pcm_engine import PcmEngine
    from atracio.wav import Wav, NoDataToRead

    wav = Wav("in.wav")
    engine = PcmEngine(4096, wav.channel_num(), reader=wav.pcm_reader())

    def process(frames, meta):
        frames *= 0.5

    try:
        while engine.apply_process(512, process) < wav.total_samples():
            pass
    except NoDataToRead:
        pass
    wav.close()

Write a RealMedia file from ready-made ATRAC3 frames:

    from atracio.rm import create_rm_output

    with create_rm_output("out.rm", "title", 2, len(frames), 384, False) as rm:
        for frame in frames:
            rm.write_frame(frame)

The RealMedia data chunk size is filled in when the writer is closed.

## What this package does not do

atracio provides no ATRAC encoder or decoder: there is no MDCT, bit
allocation or bitstream packing, and no gain or codec tables are built in.
It writes no AEA, OMA or AT3 containers and reads no compressed container
of any kind. There is no command-line program; everything is used from
Python.