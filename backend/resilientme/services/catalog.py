"""
Strategy Catalog
================
Read-only registry of pre-authored coping strategies and resources.

Detectors reference catalog entries by title, so the catalog is built
once at startup and shared without locking. Lookups of unknown titles
raise ``KeyError`` — a detector rule naming a missing strategy is a
programming error, not a runtime condition.

Also hosts ``recommend_for_mood``, the quick-suggestion table used when
the app needs a one-line alternative (e.g. after an unhelpful follow-up).
``prompt_for_mood`` picks the journaling question shown after a check-in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from resilientme.models.mood import NEGATIVE, POSITIVE, mood_valence
from resilientme.models.recommendation import (
    CopingStrategy,
    Resource,
    ResourceType,
    StrategyCategory,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

DEFAULT_STRATEGIES: tuple[CopingStrategy, ...] = (
    # --- Anxiety ---
    CopingStrategy(
        title="Grounding Technique",
        description="A simple mindfulness exercise to reduce anxiety by connecting with your senses.",
        duration="5 minutes",
        category=StrategyCategory.MINDFULNESS,
        steps=[
            "Find a comfortable position and take a slow, deep breath.",
            "Notice 5 things you can see around you.",
            "Acknowledge 4 things you can touch or feel.",
            "Listen for 3 sounds in your environment.",
            "Identify 2 things you can smell.",
            "Notice 1 thing you can taste.",
            "Repeat the cycle if needed, focusing on how your anxiety level changes.",
        ],
    ),
    CopingStrategy(
        title="Thought Challenging",
        description="Identify and challenge anxiety-producing thoughts related to rejection.",
        duration="10-15 minutes",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "Write down your anxious thought (e.g., 'Everyone will reject me now').",
            "Rate how strongly you believe it (0-100%).",
            "Identify the evidence that supports this thought.",
            "List evidence that contradicts or doesn't support this thought.",
            "Generate a more balanced alternative thought.",
            "Rate your belief in the alternative thought and notice any change in anxiety.",
        ],
    ),
    CopingStrategy(
        title="Social Confidence Builder",
        description="Gradually build confidence in social situations after rejection.",
        duration="Ongoing practice",
        category=StrategyCategory.SOCIAL,
        steps=[
            "Create a 'social ladder' with steps from least to most anxiety-provoking.",
            "Start with a low-anxiety social interaction (e.g., texting a supportive friend).",
            "Practice one small social step daily, using deep breathing before each attempt.",
            "Reward yourself for each step taken, regardless of outcome.",
            "Gradually work up to more challenging interactions.",
            "Keep a log of successful interactions to review when anxiety rises.",
        ],
    ),
    CopingStrategy(
        title="Box Breathing",
        description="Control your breathing pattern to calm your nervous system and ease anxiety.",
        duration="3-5 minutes",
        category=StrategyCategory.MINDFULNESS,
        steps=[
            "Sit comfortably with your back supported.",
            "Breathe in slowly through your nose for 4 counts.",
            "Hold your breath for 4 counts.",
            "Exhale slowly through your mouth for 4 counts.",
            "Hold your breath for 4 counts.",
            "Repeat for at least 4 cycles.",
        ],
    ),
    # --- Sadness ---
    CopingStrategy(
        title="Pleasure Activities Scheduling",
        description="Deliberately schedule activities that bring joy or a sense of accomplishment.",
        duration="15 minutes planning, then ongoing",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "Make a list of activities that have brought you joy in the past.",
            "Include simple activities that take 5-10 minutes and longer ones.",
            "Schedule at least one small pleasant activity daily.",
            "Schedule one larger activity weekly.",
            "After completing each activity, note your mood before and after.",
            "Gradually increase activities as your energy allows.",
        ],
    ),
    CopingStrategy(
        title="Negative Thought Disruption",
        description="Techniques to interrupt persistent negative thought patterns.",
        duration="5-10 minutes",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "When you notice a spiral of negative thoughts, say 'stop' firmly to yourself.",
            "Take a deep breath and physically change your position.",
            "Engage your senses with something immediate (hold an ice cube, smell an essential oil).",
            "Choose a simple mental activity (count backward from 100 by 7s, name animals alphabetically).",
            "Once disrupted, redirect to a neutral or positive activity.",
        ],
    ),
    CopingStrategy(
        title="Self-Compassion Practice",
        description="Learn to treat yourself with the kindness you would offer a good friend.",
        duration="10 minutes",
        category=StrategyCategory.MINDFULNESS,
        steps=[
            "Place your hand over your heart and feel its warmth.",
            "Acknowledge your sadness with 'This is a moment of suffering' or 'This is hard right now'.",
            "Remind yourself 'Suffering is part of life' and 'I'm not alone in feeling this way'.",
            "Ask 'What do I need right now?' and 'How can I comfort myself?'",
            "Offer yourself a kind phrase such as 'May I be kind to myself' or 'I'm doing the best I can'.",
        ],
    ),
    # --- Social rejection ---
    CopingStrategy(
        title="Rejection Reframing",
        description="Change how you think about social rejection to reduce its emotional impact.",
        duration="15 minutes",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "Describe the rejection experience objectively, without interpretation.",
            "Identify assumptions you made about why the rejection happened.",
            "List at least three alternative explanations that don't involve your worth as a person.",
            "Consider what advice you'd give a friend experiencing this rejection.",
            "Write down what you can learn from this experience.",
            "Create a short self-affirmation to remember your value beyond this incident.",
        ],
    ),
    CopingStrategy(
        title="Connection Inventory",
        description="Identify and strengthen positive social connections in your life.",
        duration="20 minutes initial, then ongoing",
        category=StrategyCategory.SOCIAL,
        steps=[
            "Make a list of people who have been supportive or made you feel valued.",
            "Note what type of support each person provides (emotional, practical, etc.).",
            "Identify one small way to nurture each key relationship this week.",
            "Schedule specific times to connect with supportive people.",
            "Practice asking for what you need from these supportive relationships.",
            "Regularly update your inventory as relationships evolve.",
        ],
    ),
    CopingStrategy(
        title="Assertiveness Training",
        description="Build skills to express your needs and boundaries respectfully.",
        duration="15-20 minutes practice sessions",
        category=StrategyCategory.SOCIAL,
        steps=[
            "Identify situations where you'd like to be more assertive.",
            "Use the format: 'I feel [emotion] when [situation]. I need [specific request].'",
            "Practice your assertive statements aloud or in writing.",
            "Role-play difficult conversations with a trusted person or in the mirror.",
            "Start with lower-pressure situations and work up to more challenging ones.",
            "Celebrate your assertiveness efforts regardless of outcome.",
        ],
    ),
    # --- Professional rejection ---
    CopingStrategy(
        title="Professional Rejection Protocol",
        description="A structured approach to process and learn from professional setbacks.",
        duration="30 minutes",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "Allow yourself 24 hours to feel disappointment fully.",
            "Write down what you learned from the experience.",
            "Identify what was in your control and what wasn't.",
            "Request specific feedback when possible.",
            "Update your skills or approach based on feedback.",
            "Set a concrete next step or new goal.",
            "Create a 'resilience file' of past successes to review after rejections.",
        ],
    ),
    CopingStrategy(
        title="Growth Mindset Development",
        description="Cultivate a perspective that sees challenges and rejection as opportunities to grow.",
        duration="10 minutes daily practice",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "Catch yourself using fixed mindset language ('I'm not good at this').",
            "Replace with growth mindset alternatives ('I'm still learning this').",
            "Add 'yet' to end of limiting statements ('I haven't mastered this skill yet').",
            "Keep a daily log of challenges and what you learned from them.",
            "Celebrate effort and process rather than just outcomes.",
            "Create a personal mantra that reinforces growth through challenges.",
        ],
    ),
    CopingStrategy(
        title="Achievements Inventory",
        description="Create a comprehensive record of your professional accomplishments to build confidence.",
        duration="45 minutes initial, then ongoing updates",
        category=StrategyCategory.COGNITIVE,
        steps=[
            "List all professional achievements, large and small, from your entire career.",
            "For each achievement, note the skills and strengths you demonstrated.",
            "Collect positive feedback you've received in one document.",
            "Create a 'wins' document and update it weekly with even small successes.",
            "Schedule a monthly review of your achievements inventory.",
            "Read through your inventory before professional challenges like interviews.",
        ],
    ),
)

# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

DEFAULT_RESOURCES: tuple[Resource, ...] = (
    Resource(
        title="The Science Behind Anxiety After Rejection",
        type=ResourceType.ARTICLE,
        description="Research-based explanations of how the brain processes rejection and why it can trigger anxiety.",
        url="https://example.com/anxiety-article",
        source="Resilient Mind Blog",
        is_new=True,
    ),
    Resource(
        title="Progressive Muscle Relaxation Audio Guide",
        type=ResourceType.AUDIO,
        description="A 15-minute guided audio exercise to release physical tension associated with anxiety.",
        url="https://example.com/relaxation-audio",
        source="Calm Mind App",
    ),
    Resource(
        title="How to Apply Behavioral Activation for Low Mood",
        type=ResourceType.ARTICLE,
        description="Practical guide to behavioral activation, a well-studied technique for lifting low mood.",
        url="https://example.com/behavior-activation",
        source="Psychology Today",
    ),
    Resource(
        title="The Upward Spiral",
        type=ResourceType.BOOK,
        description="Using neuroscience to reverse a downward mood, one small change at a time.",
        url="https://example.com/upward-spiral-book",
        source="Alex Korb, PhD",
        is_new=True,
    ),
    Resource(
        title="Building Social Resilience After Rejection",
        type=ResourceType.ARTICLE,
        description="Practical techniques to bounce back from social rejection and strengthen your social connections.",
        url="https://example.com/social-resilience",
        source="Resilient Mind Blog",
    ),
    Resource(
        title="MindDoc: Mood Tracker",
        type=ResourceType.APP,
        description="An app that helps track mood patterns and provides evidence-based exercises.",
        url="https://example.com/minddoc-app",
        source="MindDoc Health",
        is_new=True,
    ),
    Resource(
        title="The Professional's Guide to Rejection Recovery",
        type=ResourceType.ARTICLE,
        description="Strategies used by successful professionals to overcome rejection in their careers.",
        url="https://example.com/professional-rejection",
        source="Harvard Business Review",
    ),
    Resource(
        title="Rejection Proof",
        type=ResourceType.BOOK,
        description="How to turn rejection into the greatest professional opportunity.",
        url="https://example.com/rejection-proof-book",
        source="Jia Jiang",
        is_new=True,
    ),
)

# ---------------------------------------------------------------------------
# Quick suggestions keyed by mood / trigger family
# ---------------------------------------------------------------------------

_GENERAL_SUGGESTIONS = ("Take 5 deep breaths", "Go for a short walk")

_MOOD_SUGGESTIONS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("sad", "down", "depressed", "blue", "gloomy"),
        ("Call a friend who makes you laugh", "Watch something uplifting", "Listen to upbeat music"),
    ),
    (
        ("anxious", "worried", "nervous", "stressed", "overwhelmed"),
        ("Progressive muscle relaxation", "Write down your worries", "Focus on what you can control"),
    ),
    (
        ("angry", "frustrated", "irritated", "annoyed"),
        ("Count to 10 before responding", "Physical exercise to release tension", "Write about what's bothering you"),
    ),
    (
        ("happy", "joyful", "excited", "content"),
        ("Journal about what's going well", "Share your happiness with someone", "Engage in a creative activity"),
    ),
)

_TRIGGER_SUGGESTIONS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("rejection", "social"),
        ("Remember past social successes", "Practice self-compassion", "Reach out to a supportive friend"),
    ),
    (
        ("work", "professional", "job"),
        ("Break tasks into smaller steps", "Take a short break", "List your accomplishments"),
    ),
    (
        ("relationship", "romantic", "partner"),
        ("Focus on what you can control", "Practice open communication", "Take time for self-care"),
    ),
)

MAX_SUGGESTIONS = 5

# ---------------------------------------------------------------------------
# Journal prompts
# ---------------------------------------------------------------------------

_MoodPrompts = tuple[tuple[tuple[str, ...], str], ...]

# (trigger keywords, mood-specific prompts, prompt for any other mood)
_TRIGGER_PROMPTS: tuple[tuple[tuple[str, ...], _MoodPrompts, str], ...] = (
    (
        ("social", "friend", "group", "excluded", "left on read", "message"),
        (
            (("anxious",),
             "Social rejection can trigger anxiety. What specific fears came up during this "
             "experience? How have you successfully navigated similar social situations in the past?"),
            (("sad", "discouraged"),
             "Social connection is a fundamental need. How did this social rejection experience "
             "affect your sense of belonging? What supports or connections can you lean on right now?"),
            (("angry",),
             "Social rejection can feel unfair. What boundaries might have been crossed? How can "
             "you honor your feelings while responding in a way that aligns with your values?"),
        ),
        "Social rejection can be challenging. What have you learned about yourself through "
        "this experience? How might this insight help with future interactions?",
    ),
    (
        ("job", "work", "promotion", "project", "professional", "career", "interview"),
        (
            (("discouraged", "sad"),
             "Professional setbacks often feel personal but rarely are. What strengths and "
             "accomplishments can you remind yourself of right now? What is one small step "
             "toward your goals?"),
            (("embarrassed",),
             "Professional rejection in front of others can be difficult. How would you view this "
             "situation if it happened to a colleague you respect? What perspective might help you "
             "be kinder to yourself?"),
        ),
        "Professional rejection is part of everyone's journey. What lessons or feedback might "
        "be valuable here? How can you separate your worth from this particular outcome?",
    ),
    (
        ("romantic", "dating", "date", "breakup", "partner", "relationship"),
        (
            (("sad", "discouraged"),
             "Romantic rejection touches our deepest vulnerabilities. What does this experience "
             "bring up about your fears or past relationships? What would you tell a friend going "
             "through this?"),
            (("angry",),
             "Romantic disappointments can bring up strong emotions. What unmet expectation or need "
             "is beneath this anger? What healthy boundaries might need to be established?"),
        ),
        "Romantic rejection, while painful, often redirects us to better paths. What have you "
        "learned about your needs and values through this experience?",
    ),
)

_NEGATIVE_PROMPTS: _MoodPrompts = (
    (("anxious",),
     "What specifically about this situation is making you feel anxious? What's the worst that "
     "could happen, and how likely is it? What resources do you have to cope?"),
    (("sad", "discouraged"),
     "What thoughts are contributing to your sadness? Is there another perspective you could "
     "consider? What small comfort might help right now?"),
    (("angry", "frustrated"),
     "What's beneath your anger? Is there a boundary that was crossed or a need that wasn't met? "
     "How can you honor this emotion while responding thoughtfully?"),
    (("overwhelmed",),
     "What's contributing to feeling overwhelmed right now? How might you break things down into "
     "smaller, manageable parts? What can you let go of temporarily?"),
    (("embarrassed",),
     "We all experience embarrassment. How might this look from an outside perspective? How "
     "significant will this feel in a week, a month, or a year?"),
)

NEGATIVE_PROMPT = (
    "What thoughts are going through your mind right now? How might you respond to a friend "
    "feeling this way? What small step might help you feel better?"
)
POSITIVE_PROMPT = (
    "What contributed to this positive feeling? How can you create more moments like this? "
    "Who might you share this experience with?"
)
DEFAULT_PROMPT = (
    "How are you feeling right now, and what might have contributed to this feeling? "
    "What would support you in this moment?"
)


def _match_mood(mood: str, table: _MoodPrompts) -> str | None:
    for moods, prompt in table:
        if mood in moods:
            return prompt
    return None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class StrategyCatalog:
    """Immutable title-indexed view over strategies and resources."""

    def __init__(
        self,
        strategies: Iterable[CopingStrategy] = DEFAULT_STRATEGIES,
        resources: Iterable[Resource] = DEFAULT_RESOURCES,
    ) -> None:
        self._strategies: dict[str, CopingStrategy] = {s.title: s for s in strategies}
        self._resources: dict[str, Resource] = {r.title: r for r in resources}
        logger.debug(
            "Strategy catalog loaded: %d strategies, %d resources",
            len(self._strategies), len(self._resources),
        )

    def strategy(self, title: str) -> CopingStrategy:
        return self._strategies[title]

    def resource(self, title: str) -> Resource:
        return self._resources[title]

    def has_strategy(self, title: str) -> bool:
        return title in self._strategies

    @property
    def strategies(self) -> list[CopingStrategy]:
        return list(self._strategies.values())

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources.values())

    def by_category(self, category: StrategyCategory) -> list[CopingStrategy]:
        return [s for s in self._strategies.values() if s.category is category]

    def recommend_for_mood(self, mood: str, trigger: str | None = None) -> list[str]:
        """Short, one-line suggestions for a mood and optional trigger.

        Always opens with the two general suggestions, then the first
        matching mood family and the first matching trigger family.
        Deterministic: duplicates are dropped, first occurrence wins.
        """
        suggestions: list[str] = list(_GENERAL_SUGGESTIONS)

        mood_lower = mood.lower()
        for keywords, extra in _MOOD_SUGGESTIONS:
            if any(k in mood_lower for k in keywords):
                suggestions.extend(extra)
                break

        if trigger:
            trigger_lower = trigger.lower()
            for keywords, extra in _TRIGGER_SUGGESTIONS:
                if any(k in trigger_lower for k in keywords):
                    suggestions.extend(extra)
                    break

        return list(dict.fromkeys(suggestions))[:MAX_SUGGESTIONS]

    def prompt_for_mood(self, mood: str, trigger: str | None = None) -> str:
        """Journal prompt for a mood, tailored to the rejection trigger if one is given.

        The first trigger family whose keyword appears in ``trigger`` wins and
        always yields a prompt. Without a matching trigger the prompt follows
        the mood itself, then its valence.
        """
        mood_lower = mood.strip().lower()

        if trigger:
            trigger_lower = trigger.lower()
            for keywords, by_mood, fallback in _TRIGGER_PROMPTS:
                if any(k in trigger_lower for k in keywords):
                    return _match_mood(mood_lower, by_mood) or fallback

        valence = mood_valence(mood_lower)
        if valence == NEGATIVE:
            return _match_mood(mood_lower, _NEGATIVE_PROMPTS) or NEGATIVE_PROMPT
        if valence == POSITIVE:
            return POSITIVE_PROMPT
        return DEFAULT_PROMPT
