"""AI enrichment: provider interface, response decoders and the orchestrators built on them."""

from .provider import FeedbackProvider, OpenAIChatProvider, PromptPayload, UnavailableProvider, provider_from_config
from .orchestrator import AIAnalysis, AIAnalysisOrchestrator, FeedbackItem, default_analysis
from .feedback import FeedbackGenerator, Insights, default_insights
