"""
Best-effort AI enrichment of a completed game session.

Each game type runs its own pipeline of provider calls (per-response and
aggregate coherence for rapid fire, per-transition and breathe-cue analysis
for conductor, per-word integration and coherence for triple step). Calls
within one session fan out on a thread pool and are all awaited before a
single AIAnalysis is built.

``AIAnalysisOrchestrator.analyze`` never raises: a provider failure, a
timeout or any unexpected error collapses the whole result to
``default_analysis()``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional

from podium.constants import RAPID_FIRE, CONDUCTOR, TRIPLE_STEP
from podium.errors import AIProviderError
from podium.services.games.variants import (
    GameSpecificData, RapidFireData, ConductorData, TripleStepData,
)
from podium.utils import clamp_percent, mean, round_half_up, to_number
from .decoders import DecoderChain
from .provider import FeedbackProvider, PromptPayload

logger = logging.getLogger(__name__)

DEFAULT_METRIC = 75
INTEGRATION_SUCCESS_THRESHOLD = 60


@dataclass(frozen=True)
class FeedbackItem:
    type: str  # positive, improvement, suggestion
    message: str


@dataclass(frozen=True)
class AIAnalysis:
    speech_clarity: int
    energy_level: int
    coherence: int
    confidence: int
    fluency: int
    overall_rating: int
    feedback: List[FeedbackItem] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    source: str = 'provider'

    @property
    def is_default(self) -> bool:
        return self.source == 'default'

    def to_dict(self):
        return asdict(self)


def default_analysis() -> AIAnalysis:
    return AIAnalysis(
        speech_clarity=DEFAULT_METRIC,
        energy_level=DEFAULT_METRIC,
        coherence=DEFAULT_METRIC,
        confidence=DEFAULT_METRIC,
        fluency=DEFAULT_METRIC,
        overall_rating=DEFAULT_METRIC,
        feedback=[
            FeedbackItem('positive', 'Good effort in completing the exercise'),
            FeedbackItem('suggestion', 'Continue practicing to improve your skills'),
        ],
        strengths=['Good effort', 'Game completion'],
        areas_for_improvement=['Continue practicing', 'Focus on improvement areas'],
        source='default',
    )


@dataclass(frozen=True)
class CallSpec:
    """How to ask for, and read back, one kind of sub-analysis."""
    system: str
    default: dict
    heuristic_fields: Dict[str, str]
    max_tokens: int = 400

    def chain(self) -> DecoderChain:
        return DecoderChain.standard(self.default, self.heuristic_fields)


RAPID_FIRE_RESPONSE = CallSpec(
    system='You are a public speaking coach evaluating rapid-fire responses. Be encouraging but honest.',
    default={'creativity': 75, 'relevance': 75, 'clarity': 75, 'speed': 75},
    heuristic_fields={'creativity': 'creativity', 'relevance': 'relevance', 'clarity': 'clarity', 'speed': 'speed'},
    max_tokens=300,
)
RAPID_FIRE_COHERENCE = CallSpec(
    system='You are a rapid-fire response analyst for public speaking training.',
    default={'overallCoherence': 75, 'strengths': ['Good effort'], 'improvements': ['Continue practicing']},
    heuristic_fields={'overallCoherence': 'coherence'},
    max_tokens=500,
)
ENERGY_TRANSITION = CallSpec(
    system='You are a voice coach specializing in energy transitions and modulation.',
    default={'smoothness': 75},
    heuristic_fields={'smoothness': 'smoothness'},
)
BREATHE_CUE = CallSpec(
    system='You are a breathing and voice coach analyzing breathing cue responses.',
    default={'cueFollowed': True, 'overallScore': 75},
    heuristic_fields={'overallScore': 'score'},
)
WORD_INTEGRATION = CallSpec(
    system='You are a speech coach analyzing word integration exercises.',
    default={'integrationScore': 75},
    heuristic_fields={'integrationScore': 'integration'},
)
SPEECH_COHERENCE = CallSpec(
    system=('You are an expert speech analyst specializing in coherence and topic adherence. '
            'Judge logical progression, topic relevance, transition quality and message clarity.'),
    default={'coherenceScore': 75, 'topicAdherence': 75},
    heuristic_fields={'coherenceScore': 'coherence', 'topicAdherence': 'adherence'},
    max_tokens=500,
)


def _strings(value, fallback: List[str]) -> List[str]:
    if isinstance(value, list):
        items = [item for item in value if isinstance(item, str) and item.strip()]
        if items:
            return items
    return list(fallback)


def _rapid_fire_response_prompt(prompt, response, response_time) -> str:
    return (
        'Analyze this rapid-fire analogy response:\n\n'
        f'Prompt: "{prompt}"\nResponse: "{response}"\nResponse Time: {response_time}s\n\n'
        'Rate 1-100 and answer as JSON with keys creativity, relevance, clarity, speed:\n'
        '1. Creativity and originality\n2. Relevance to the prompt\n'
        '3. Clarity and coherence\n4. Speed appropriateness'
    )


def _rapid_fire_coherence_prompt(data: RapidFireData) -> str:
    pairs = '\n\n'.join(
        f'Prompt: "{p.text}"\nResponse: "{p.user_response or "No response"}"\nTime: {p.response_time}s'
        for p in data.prompts
    )
    return (
        f'Analyze the coherence of rapid-fire analogy responses:\n\n{pairs}\n\n'
        'Provide analysis in JSON format:\n'
        '{"overallCoherence": 80, "strengths": ["..."], "improvements": ["..."]}'
    )


def _transition_prompt(transition) -> str:
    return (
        'Analyze this energy transition in speech:\n\n'
        f'From Energy Level: {transition.from_level:g}/9\nTo Energy Level: {transition.to_level:g}/9\n'
        f'Speech Segment: "{transition.speech_segment or "Energy transition"}"\n'
        f'Transition Time: {transition.transition_time:g}ms\n\n'
        'Provide analysis in JSON format:\n'
        '{"transitionSuccess": true, "smoothness": 85, "feedback": "..."}'
    )


def _breathe_prompt(cue) -> str:
    return (
        'Analyze this breathing cue response:\n\n'
        f'Breathe Cue: "BREATHE"\nSpeech Before Cue: "{cue.speech_before}"\n'
        f'Speech After Cue: "{cue.speech_after}"\nResponse Time: {cue.response_time:g}ms\n\n'
        'Provide analysis in JSON format:\n'
        '{"cueFollowed": true, "overallScore": 85, "feedback": "..."}'
    )


def _word_prompt(topic, attempt) -> str:
    return (
        'Analyze how well a word was integrated into speech:\n\n'
        f'Main Topic: "{topic}"\nTarget Word: "{attempt.word}"\n'
        f'Speech Context: "{attempt.context}"\nIntegration Time: {attempt.integration_time:g}ms\n\n'
        'Provide analysis in JSON format:\n'
        '{"integrationScore": 85, "coherenceMaintained": true, "feedback": "..."}'
    )


def _coherence_prompt(transcript, topic, game_type) -> str:
    return (
        'Analyze the coherence and topic adherence of this speech:\n\n'
        f'Speech Transcript: "{transcript}"\nMain Topic: "{topic}"\nContext: {game_type}\n\n'
        'Provide analysis in JSON format:\n'
        '{"coherenceScore": 85, "topicAdherence": 90, "strengths": ["..."], "improvementAreas": ["..."]}'
    )


class AIAnalysisOrchestrator:

    def __init__(self, provider: FeedbackProvider, max_workers: int = 4, timeout: float = 45.0):
        self.provider = provider
        self.max_workers = max(1, int(max_workers))
        self.timeout = timeout
        self._pipelines: Dict[str, Callable[[GameSpecificData], Optional[AIAnalysis]]] = {
            RAPID_FIRE: self._analyze_rapid_fire,
            CONDUCTOR: self._analyze_conductor,
            TRIPLE_STEP: self._analyze_triple_step,
        }

    def analyze(self, game_type: str, game_data: Optional[GameSpecificData]) -> AIAnalysis:
        pipeline = self._pipelines.get(game_type)
        if pipeline is None or game_data is None:
            logger.info(f"[ai] no {game_type} telemetry to analyze; using default analysis")
            return default_analysis()
        try:
            return pipeline(game_data) or default_analysis()
        except AIProviderError as exc:
            logger.warning(f"[ai] {game_type} analysis failed, using default: {exc}")
        except Exception:
            logger.exception(f"[ai] unexpected error during {game_type} analysis, using default")
        return default_analysis()

    def _run(self, calls: List[tuple]) -> List[dict]:
        """Send every (CallSpec, prompt) concurrently and decode the replies in order."""
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(calls)))
        try:
            futures = [
                executor.submit(self.provider.analyze,
                                PromptPayload(prompt=prompt, system=spec.system, max_tokens=spec.max_tokens))
                for spec, prompt in calls
            ]
            done, not_done = wait(futures, timeout=self.timeout)
            if not_done:
                raise AIProviderError(f"{len(not_done)} of {len(futures)} provider calls timed out")
            results = []
            for (spec, _prompt), future in zip(calls, futures):
                decoded = spec.chain().decode(future.result())
                if decoded.tier != 'structured':
                    logger.debug(f"[ai] reply decoded by {decoded.tier} tier")
                results.append(decoded.values)
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _analyze_rapid_fire(self, data: RapidFireData) -> Optional[AIAnalysis]:
        answered = [p for p in data.prompts if p.user_response]
        if not data.prompts or not answered:
            return None
        calls = [(RAPID_FIRE_COHERENCE, _rapid_fire_coherence_prompt(data))]
        calls += [(RAPID_FIRE_RESPONSE, _rapid_fire_response_prompt(p.text, p.user_response, p.response_time))
                  for p in answered]
        coherence, *responses = self._run(calls)

        qualities = [
            mean(to_number(r.get(key)) for key in ('creativity', 'relevance', 'clarity', 'speed'))
            for r in responses
        ]
        overall = clamp_percent(mean(round_half_up(q) for q in qualities))
        return AIAnalysis(
            speech_clarity=overall,
            energy_level=overall,
            coherence=clamp_percent(coherence.get('overallCoherence')),
            confidence=overall,
            fluency=overall,
            overall_rating=overall,
            strengths=_strings(coherence.get('strengths'), ['Good effort']),
            areas_for_improvement=_strings(coherence.get('improvements'), ['Continue practicing']),
            feedback=[
                FeedbackItem('positive', 'Good completion of rapid-fire exercises'),
                FeedbackItem('improvement', 'Focus on response clarity and speed'),
            ],
        )

    def _analyze_conductor(self, data: ConductorData) -> Optional[AIAnalysis]:
        if not data.energy_transitions:
            return None
        calls = [(ENERGY_TRANSITION, _transition_prompt(t)) for t in data.energy_transitions]
        calls += [(BREATHE_CUE, _breathe_prompt(c)) for c in data.breathe_cues]
        results = self._run(calls)
        transitions = results[:len(data.energy_transitions)]
        breathes = results[len(data.energy_transitions):]

        successful = sum(1 for t in transitions if _transition_succeeded(t))
        energy_consistency = round_half_up(successful / len(transitions) * 100)
        breathe_score = mean(clamp_percent(b.get('overallScore')) for b in breathes) if breathes else DEFAULT_METRIC
        overall = clamp_percent((energy_consistency + breathe_score) / 2)
        return AIAnalysis(
            speech_clarity=overall,
            energy_level=clamp_percent(energy_consistency),
            coherence=DEFAULT_METRIC,
            confidence=overall,
            fluency=overall,
            overall_rating=overall,
            strengths=['Good energy awareness', 'Willingness to adapt'],
            areas_for_improvement=['Energy consistency', 'Smooth transitions'],
            feedback=[
                FeedbackItem('positive', 'Good energy modulation practice'),
                FeedbackItem('improvement', 'Focus on smooth energy transitions'),
            ],
        )

    def _analyze_triple_step(self, data: TripleStepData) -> Optional[AIAnalysis]:
        if not data.words:
            return None
        calls = [(WORD_INTEGRATION, _word_prompt(data.topic, w)) for w in data.words]
        calls.append((SPEECH_COHERENCE, _coherence_prompt(
            data.speech_transcript or 'Word integration exercise', data.topic, TRIPLE_STEP)))
        *integrations, coherence = self._run(calls)

        successful = sum(1 for r in integrations
                         if clamp_percent(r.get('integrationScore')) >= INTEGRATION_SUCCESS_THRESHOLD)
        integration_success = round_half_up(successful / len(integrations) * 100)
        coherence_score = clamp_percent(coherence.get('coherenceScore'))
        overall = clamp_percent((integration_success + coherence_score) / 2)
        return AIAnalysis(
            speech_clarity=overall,
            energy_level=DEFAULT_METRIC,
            coherence=coherence_score,
            confidence=overall,
            fluency=overall,
            overall_rating=overall,
            strengths=_strings(coherence.get('strengths'), ['Good word integration', 'Topic focus']),
            areas_for_improvement=_strings(coherence.get('improvementAreas'),
                                           ['Natural integration', 'Flow preservation']),
            feedback=[
                FeedbackItem('positive', 'Good word integration practice'),
                FeedbackItem('improvement', 'Focus on natural word weaving'),
            ],
        )


def _transition_succeeded(values: dict) -> bool:
    flag = values.get('transitionSuccess')
    if isinstance(flag, bool):
        return flag
    return clamp_percent(values.get('smoothness')) >= INTEGRATION_SUCCESS_THRESHOLD
