import json
import time

import pytest

from conftest import FakeProvider
from podium.errors import AIProviderError
from podium.services.ai.orchestrator import (
    AIAnalysisOrchestrator, BREATHE_CUE, ENERGY_TRANSITION, RAPID_FIRE_COHERENCE, RAPID_FIRE_RESPONSE,
    SPEECH_COHERENCE, WORD_INTEGRATION, default_analysis,
)
from podium.services.games.variants import parse_game_specific

RAPID_FIRE = parse_game_specific('rapidFire', {'rapidFire': {
    'total_prompts': 3,
    'completed_responses': 2,
    'prompts': [
        {'text': 'Success is like', 'user_response': 'a mountain trail', 'response_time': 2.1},
        {'text': 'Trust is like', 'user_response': 'a glass bridge', 'response_time': 3.0},
        {'text': 'Change is like', 'user_response': '', 'response_time': 0},
    ],
}})
CONDUCTOR = parse_game_specific('conductor', {'conductor': {
    'consistency': 70,
    'energy_transitions': [
        {'from_level': 3, 'to_level': 7, 'transition_time': 1200, 'speech_segment': 'and now louder'},
        {'from_level': 7, 'to_level': 2, 'transition_time': 900, 'speech_segment': 'and softer'},
    ],
    'breathe_cues': [{'response_time': 800, 'speech_before': 'so', 'speech_after': 'then'}],
}})
TRIPLE_STEP = parse_game_specific('tripleStep', {'tripleStep': {
    'topic': 'Teamwork',
    'words_attempted': 3,
    'successful_integrations': 2,
    'speech_transcript': 'Teams are like rainbows...',
    'words': [{'word': 'rainbow'}, {'word': 'calculator'}, {'word': 'spaceship'}],
}})


def _by_system(replies):
    def reply(payload):
        value = replies[payload.system]
        return value(payload) if callable(value) else value
    return reply


def _assert_default(analysis):
    assert analysis == default_analysis()
    assert analysis.is_default
    assert analysis.overall_rating == 75
    assert analysis.strengths and analysis.areas_for_improvement and analysis.feedback


@pytest.mark.parametrize('game_type,data', [
    ('rapidFire', RAPID_FIRE),
    ('conductor', CONDUCTOR),
    ('tripleStep', TRIPLE_STEP),
])
def test_throwing_provider_yields_default(game_type, data):
    provider = FakeProvider(error=AIProviderError('connection refused'))
    _assert_default(AIAnalysisOrchestrator(provider).analyze(game_type, data))
    assert provider.calls


def test_unexpected_provider_error_yields_default():
    provider = FakeProvider(error=RuntimeError('boom'))
    _assert_default(AIAnalysisOrchestrator(provider).analyze('tripleStep', TRIPLE_STEP))


def test_slow_provider_times_out_to_default():
    def slow(payload):
        time.sleep(0.5)
        return '{}'
    orchestrator = AIAnalysisOrchestrator(FakeProvider(reply=slow), timeout=0.05)
    _assert_default(orchestrator.analyze('rapidFire', RAPID_FIRE))


def test_missing_telemetry_skips_provider():
    provider = FakeProvider(reply='{}')
    orchestrator = AIAnalysisOrchestrator(provider)
    _assert_default(orchestrator.analyze('conductor', None))
    _assert_default(orchestrator.analyze('tripleStep', parse_game_specific('tripleStep', {'tripleStep': {}})))
    assert provider.calls == []


def test_malformed_text_falls_back_per_call():
    provider = FakeProvider(reply='Sorry, I cannot rate this.')
    analysis = AIAnalysisOrchestrator(provider).analyze('rapidFire', RAPID_FIRE)
    assert not analysis.is_default
    assert analysis.overall_rating == 75
    assert analysis.coherence == 75
    # One aggregate call plus one per answered prompt
    assert len(provider.calls) == 3


def test_rapid_fire_structured_replies():
    provider = FakeProvider(reply=_by_system({
        RAPID_FIRE_COHERENCE.system: json.dumps({'overallCoherence': 68, 'strengths': ['Vivid imagery']}),
        RAPID_FIRE_RESPONSE.system: 'Scores: {"creativity": 90, "relevance": 80, "clarity": 85, "speed": 75}',
    }))
    analysis = AIAnalysisOrchestrator(provider).analyze('rapidFire', RAPID_FIRE)
    assert analysis.overall_rating == 83
    assert analysis.speech_clarity == 83
    assert analysis.coherence == 68
    assert analysis.strengths == ['Vivid imagery']
    assert analysis.source == 'provider'


def test_conductor_transitions_and_breathing():
    replies = iter(['{"transitionSuccess": true, "smoothness": 90}', '{"transitionSuccess": false, "smoothness": 40}'])
    provider = FakeProvider(reply=_by_system({
        ENERGY_TRANSITION.system: lambda payload: next(replies),
        BREATHE_CUE.system: 'Breathing overall score 90 out of 100',
    }))
    analysis = AIAnalysisOrchestrator(provider, max_workers=1).analyze('conductor', CONDUCTOR)
    assert analysis.energy_level == 50
    assert analysis.overall_rating == 70


def test_triple_step_integration_threshold():
    scores = {'rainbow': 80, 'calculator': 40, 'spaceship': 60}
    provider = FakeProvider(reply=_by_system({
        WORD_INTEGRATION.system: lambda payload: json.dumps(
            {'integrationScore': next(v for k, v in scores.items() if f'"{k}"' in payload.prompt)}),
        SPEECH_COHERENCE.system: '{"coherenceScore": 73, "topicAdherence": 80}',
    }))
    analysis = AIAnalysisOrchestrator(provider).analyze('tripleStep', TRIPLE_STEP)
    # 2 of 3 words at or above 60 -> 67; (67 + 73) / 2 = 70
    assert analysis.overall_rating == 70
    assert analysis.coherence == 73
