import logging
import re
from dataclasses import dataclass, field, asdict
from typing import List

from podium.errors import AIProviderError
from .decoders import DecodeError, DefaultDecoder, StructuredDecoder
from .provider import FeedbackProvider, PromptPayload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are an expert public speaking coach providing personalized feedback and coaching advice. '
    'Be encouraging, specific, and actionable in your feedback. '
    'Focus on helping the user improve their skills progressively.'
)


@dataclass(frozen=True)
class Insights:
    summary: str
    strengths: List[str] = field(default_factory=list)
    improvement_areas: List[dict] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    motivation: str = ''
    recommended_difficulty: str = 'beginner'
    source: str = 'provider'

    def to_dict(self):
        return asdict(self)


def default_insights(game_type: str, difficulty: str) -> Insights:
    return Insights(
        summary=f'Good work on your {game_type} training!',
        strengths=['Consistent effort', 'Good game completion'],
        improvement_areas=[{
            'area': 'Skill Development',
            'description': 'Focus on improving specific aspects of your speaking',
            'actionable_steps': ['Practice regularly', 'Focus on feedback'],
            'practice_exercises': ['Daily speaking practice', 'Record and review'],
        }],
        recommendations=['Continue practicing', 'Try different difficulty levels'],
        motivation='Keep up the great work! Every practice session makes you better.',
        recommended_difficulty=difficulty,
        source='default',
    )


class NarrativeDecoder:
    """Middle tier for coaching text: keep readable prose when no JSON came back."""
    name = 'heuristic'

    def decode(self, text: str) -> dict:
        if not isinstance(text, str):
            raise DecodeError('provider text is not a string')
        paragraphs = [p.strip() for p in re.split(r'\n\s*\n', text) if p.strip()]
        if not paragraphs:
            raise DecodeError('empty provider text')
        bullets = re.findall(r'^\s*(?:[-*•]|\d+[.)])\s+(.+)$', text, re.MULTILINE)
        values = {'overallAssessment': paragraphs[0]}
        if bullets:
            values['nextSteps'] = bullets
        return values


def _strings(value, fallback):
    if isinstance(value, list):
        items = [str(item) for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
        if items:
            return items
    return list(fallback)


def _areas(value, fallback):
    if not isinstance(value, list):
        return list(fallback)
    areas = []
    for item in value:
        if isinstance(item, dict):
            areas.append({
                'area': str(item.get('area', '')),
                'description': str(item.get('description', '')),
                'actionable_steps': _strings(item.get('actionableSteps'), []),
                'practice_exercises': _strings(item.get('practiceExercises'), []),
            })
        elif isinstance(item, str) and item.strip():
            areas.append({'area': item, 'description': '', 'actionable_steps': [], 'practice_exercises': []})
    return areas or list(fallback)


class FeedbackGenerator:
    """Personalized coaching feedback behind the same fallback guarantee as session analysis."""

    def __init__(self, provider: FeedbackProvider, max_tokens: int = 1000):
        self.provider = provider
        self.max_tokens = max_tokens

    def build_prompt(self, user_stats: dict, game_type: str, recent: dict, difficulty: str) -> str:
        return (
            'Generate personalized feedback for a public speaking student.\n\n'
            'User Profile:\n'
            f"- Total Games Played: {user_stats.get('total_games_played', 0)}\n"
            f"- Average Score: {user_stats.get('average_score', 0)}\n"
            f"- Best Score: {user_stats.get('best_score', 0)}\n"
            f"- Total Time Spent: {user_stats.get('total_time_spent', 0)} seconds\n"
            f'- Current Difficulty: {difficulty}\n\n'
            f'Recent Performance ({game_type}):\n'
            f"- Score: {recent.get('score', 0)}\n"
            f"- Accuracy: {recent.get('accuracy', 0)}%\n"
            f"- Speed: {recent.get('speed', 0)}s\n"
            f"- Average Session Length: {recent.get('session_duration', 0)}s\n\n"
            'Format your response as JSON:\n'
            '{"overallAssessment": "...", "strengths": ["..."], '
            '"improvementAreas": [{"area": "...", "description": "...", '
            '"actionableSteps": ["..."], "practiceExercises": ["..."]}], '
            '"nextSteps": ["..."], "motivation": "...", "recommendedDifficulty": "intermediate"}'
        )

    def generate(self, user_stats: dict, game_type: str, recent: dict, difficulty: str) -> Insights:
        fallback = default_insights(game_type, difficulty)
        payload = PromptPayload(
            prompt=self.build_prompt(user_stats, game_type, recent, difficulty),
            system=SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
            temperature=0.4,
        )
        try:
            text = self.provider.analyze(payload)
        except AIProviderError as exc:
            logger.warning(f"[insights] feedback generation failed, using default: {exc}")
            return fallback
        except Exception:
            logger.exception('[insights] unexpected feedback provider error, using default')
            return fallback

        for decoder in (StructuredDecoder(), NarrativeDecoder(), DefaultDecoder({})):
            try:
                values = decoder.decode(text)
            except DecodeError:
                continue
            if not values:
                return fallback
            return Insights(
                summary=str(values.get('overallAssessment') or fallback.summary),
                strengths=_strings(values.get('strengths'), fallback.strengths),
                improvement_areas=_areas(values.get('improvementAreas'), fallback.improvement_areas),
                recommendations=_strings(values.get('nextSteps'), fallback.recommendations),
                motivation=str(values.get('motivation') or fallback.motivation),
                recommended_difficulty=str(values.get('recommendedDifficulty') or difficulty),
            )
        return fallback
