import pytest

from atracio.compressed_io import CompressedIO, CompressedInput, CompressedOutput

_INPUT_METHODS = {
    "name": lambda self: "input",
    "channel_num": lambda self: 1,
    "read_frame": lambda self: b"frame",
    "length_in_samples": lambda self: 512,
}

_OUTPUT_METHODS = {
    "name": lambda self: "memory",
    "channel_num": lambda self: 2,
    "write_frame": lambda self, data: None,
}

_BASES = {"input": (CompressedInput, _INPUT_METHODS), "output": (CompressedOutput, _OUTPUT_METHODS)}


def test_abstract_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        CompressedIO()
    with pytest.raises(TypeError):
        CompressedOutput()
    with pytest.raises(TypeError):
        CompressedInput()


@pytest.mark.parametrize(
    "base, expected",
    [
        (CompressedIO, {"name", "channel_num"}),
        (CompressedInput, set(_INPUT_METHODS)),
        (CompressedOutput, set(_OUTPUT_METHODS)),
    ],
)
def test_abstract_method_sets(base, expected):
    assert set(base.__abstractmethods__) == expected
    with pytest.raises(TypeError) as info:
        base()
    message = str(info.value)
    for method in expected:
        assert method in message


@pytest.mark.parametrize("missing", sorted(_INPUT_METHODS))
def test_input_missing_method_is_rejected(missing):
    namespace = {k: v for k, v in _INPUT_METHODS.items() if k != missing}
    partial = type("Partial", (CompressedInput,), namespace)
    assert set(partial.__abstractmethods__) == {missing}
    with pytest.raises(TypeError):
        partial()
    with pytest.raises(TypeError):
        CompressedInput()


@pytest.mark.parametrize("missing", sorted(_OUTPUT_METHODS))
def test_output_missing_method_is_rejected(missing):
    namespace = {k: v for k, v in _OUTPUT_METHODS.items() if k != missing}
    partial = type("Partial", (CompressedOutput,), namespace)
    assert set(partial.__abstractmethods__) == {missing}
    with pytest.raises(TypeError):
        partial()
    with pytest.raises(TypeError):
        CompressedOutput()


def test_complete_subclasses_are_compressed_io():
    full_input = type("FullInput", (CompressedInput,), dict(_INPUT_METHODS))()
    full_output = type("FullOutput", (CompressedOutput,), dict(_OUTPUT_METHODS))()
    assert isinstance(full_input, CompressedIO)
    assert isinstance(full_output, CompressedIO)
    assert not isinstance(full_input, CompressedOutput)
    assert full_input.length_in_samples() == 512
    assert full_output.channel_num() == 2
    with pytest.raises(TypeError):
        CompressedIO()