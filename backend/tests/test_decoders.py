import pytest

from podium.services.ai.decoders import (
    DecodeError, DecoderChain, DefaultDecoder, HeuristicDecoder, StructuredDecoder,
)


def test_structured_extracts_json_wrapped_in_prose():
    text = 'Here is my analysis:\n{"coherenceScore": 88, "strengths": ["flow"]}\nThanks!'
    assert StructuredDecoder().decode(text) == {'coherenceScore': 88, 'strengths': ['flow']}


@pytest.mark.parametrize('text', [
    'no braces at all',
    '{"coherenceScore": 88,,}',
    '',
])
def test_structured_rejects_missing_or_broken_json(text):
    with pytest.raises(DecodeError):
        StructuredDecoder().decode(text)


def test_heuristic_reads_label_then_digits():
    decoder = HeuristicDecoder({'coherenceScore': 'coherence', 'topicAdherence': 'adherence'})
    values = decoder.decode('Overall Coherence: about 72 out of 100.\nTopic adherence was 64.')
    assert values == {'coherenceScore': 72, 'topicAdherence': 64}


def test_heuristic_does_not_cross_lines():
    decoder = HeuristicDecoder({'coherenceScore': 'coherence'})
    with pytest.raises(DecodeError):
        decoder.decode('coherence was good\nscore 90')


def test_default_never_fails():
    assert DefaultDecoder({'smoothness': 75}).decode(None) == {'smoothness': 75}


def test_chain_reports_the_tier_that_answered():
    chain = DecoderChain.standard({'coherenceScore': 75, 'topicAdherence': 75},
                                  {'coherenceScore': 'coherence'})

    structured = chain.decode('{"coherenceScore": 90}')
    assert structured.tier == 'structured'
    assert structured.values == {'coherenceScore': 90, 'topicAdherence': 75}

    heuristic = chain.decode('coherence 61')
    assert heuristic.tier == 'heuristic'
    assert heuristic.values['coherenceScore'] == 61

    fallback = chain.decode('I cannot help with that.')
    assert fallback.tier == 'default'
    assert fallback.values == {'coherenceScore': 75, 'topicAdherence': 75}


def test_chain_requires_default_last():
    with pytest.raises(ValueError):
        DecoderChain([StructuredDecoder()])
