from itertools import islice

import pytest

from primekey.candidates import CandidateStream
from primekey.errors import InvalidInputError


@pytest.mark.parametrize("bits", [8, 100, 1024, 2048])
def test_candidates_are_odd_with_exact_bit_length(bits):
    for value in islice(CandidateStream(bits), 25):
        assert value % 2 == 1
        assert value.bit_length() == bits


@pytest.mark.parametrize("bits", [1024, 2048, 3072, 4096])
def test_candidates_are_big(bits):
    assert all(value > 2 ** (bits - 1) for value in islice(CandidateStream(bits), 10))


def test_smallest_stream_is_constant():
    assert set(islice(CandidateStream(2), 20)) == {3}


def test_stream_never_exhausts():
    stream = CandidateStream(16)
    assert iter(stream) is stream
    assert len(list(islice(stream, 1000))) == 1000


def test_draws_vary():
    assert len(set(islice(CandidateStream(256), 20))) > 1


@pytest.mark.parametrize("bits", [0, 1, -5])
def test_invalid_bit_length(bits):
    with pytest.raises(InvalidInputError):
        CandidateStream(bits)
