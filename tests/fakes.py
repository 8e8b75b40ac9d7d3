"""Scripted text generation adapter and sample content for tests.

``FakeAdapter`` recognises each prompt the pipeline builds by a marker
phrase and answers with content that passes the section validators.
Individual prompts can be overridden with ``sequence(...)`` scripts that
return text or raise adapter errors.
"""

import asyncio
import re
from typing import Callable, Dict, List, Optional, Tuple, Union

SOURCE_BLOCK = (
    "Cities around the world are changing the way they produce and use energy. "
    "In 2015, leaders signed the Paris Agreement and promised to cut carbon pollution. "
    "Since then, many local governments have invested in solar panels, wind farms and "
    "cleaner public transport. "
    "The young activist Greta Thunberg has asked adults to act faster on climate change. "
    "In Copenhagen, most people ride bicycles to work, even when the weather is cold and wet. "
    "Engineers say that renewable energy is now cheaper than coal in many countries. "
    "Families can help by recycling, saving electricity at home and choosing trains instead "
    "of short flights. "
    "Some critics worry that the change is too expensive for poor communities. "
    "Others argue that doing nothing will cost much more in the future. "
    "Schools are teaching children about the climate so that the next generation understands "
    "the problem. "
    "Community gardens, electric buses and green roofs are becoming common sights in busy "
    "neighborhoods. "
    "Scientists continue to measure rising temperatures and stronger storms every year. "
    "The challenge is large, but small actions by millions of people can make a real difference."
)

SOURCE_ENTITIES = ["Paris Agreement", "Greta Thunberg", "Copenhagen", "2015"]


def source_text(min_words: int = 1200) -> str:
    """Repeat the sample article until it has at least ``min_words`` words."""
    blocks: List[str] = []
    while len(" ".join(blocks).split()) < min_words:
        blocks.append(SOURCE_BLOCK)
    return "\n\n".join(blocks)


SUMMARY = (
    "Cities are switching to renewable energy to fight climate change. "
    "People are changing how they travel and use power at home."
)
VOCABULARY = [
    "climate", "energy", "renewable", "pollution", "community",
    "transport", "solar", "carbon", "recycling", "future",
]
THEMES = ["climate change", "renewable energy", "city life"]
TITLE = "Green Cities and Clean Energy"

OPENING = [
    "Have you ever tried to save energy at home?",
    "What do you think about using solar power in your city?",
    "How do you usually travel to work or school?",
]
LEAKY_OPENING = [
    "What do you know about Greta Thunberg and her work?",
    "Have you ever tried to save energy at home?",
    "How do you usually travel to work or school?",
]
COMPREHENSION = [
    "Why are many cities changing the way they use energy?",
    "What kind of power is now cheaper than coal in many places?",
    "How can every community help to reduce pollution?",
    "What do some people think about the cost of these changes?",
    "What do scientists still measure every single year?",
]
DISCUSSION = [
    "What do you personally do to save energy in your daily life?",
    "How is renewable energy changing the city where you live now?",
    "Why do you think some people worry about the cost of climate action?",
    "How could your community reduce pollution from cars and buses?",
    "Which action against climate change is the most important for your generation?",
]
FOLLOW_UP = [
    "Would you like to use solar panels at your home?",
    "How do you travel around your city most of the time?",
    "What small change could you make this week to help the climate?",
]
CLOSING = [
    "What was the most interesting idea in this lesson for you?",
    "Which new words about energy will you use this week?",
    "How will you explain climate change to a friend now?",
]

PASSAGE = (
    "Many cities around the world want cleaner air and a safer climate for their people. "
    "They are changing the way they make and use energy every day. "
    "Renewable power from the sun and the wind is now cheaper than coal in many places. "
    "Because of this, local leaders are building solar farms and buying electric buses. "
    "Less pollution means that children and older people can breathe more easily. "
    "Every community can also help by recycling and by saving electricity at home. "
    "Some people think these changes cost too much money for poor families. "
    "Others say that doing nothing will be much more expensive in the future. "
    "Schools now teach students how the climate is changing and why it matters. "
    "Young people often share ideas about clean transport with their friends and families. "
    "In many towns, bicycles and trains are replacing short trips by car. "
    "Scientists still measure rising temperatures and stronger storms every single year. "
    "The problem is big, but small actions by millions of people can make a real difference."
)

DIALOGUE = [
    "Student: I read that our city wants to use more renewable energy next year.",
    "Tutor: That is true, and the plan should reduce pollution in the busy center.",
    "Student: Why is the city changing its energy plan right now?",
    "Tutor: Many people are worried about the climate and the hot summers we have.",
    "Student: My family recycles at home, but I want to do more for the climate.",
    "Tutor: You could take the bus or ride a bicycle to school every day.",
    "Student: The buses are slow in my area, so I usually walk to school.",
    "Tutor: Walking is great because it costs nothing and it creates no pollution.",
    "Student: Do you think solar panels are a good idea for small houses?",
    "Tutor: Yes, many families save money on energy with panels on their roofs.",
    "Student: I would like to learn more about how the panels actually work.",
    "Tutor: We can read a short article about solar power in our next class.",
    "Student: That sounds useful, and I can share it with my whole community.",
    "Tutor: Great idea, small steps like that really help the whole city change.",
]

FILL_GAP_DIALOGUE = [
    "Student: I read that our city wants to use more renewable _____ next year.",
    "Tutor: That is true, and the plan should reduce pollution in the busy center.",
    "Student: Why is the city changing its energy plan right now?",
    "Tutor: Many people are worried about the _____ and the hot summers we have.",
    "Student: My family recycles at home, but I want to do more for the climate.",
    "Tutor: You could take the bus or ride a bicycle to school every day.",
    "Student: The buses are slow in my area, so I usually _____ to school.",
    "Tutor: Walking is great because it costs nothing and it creates no pollution.",
    "Student: Do you think solar panels are a good idea for small houses?",
    "Tutor: Yes, many families save money on energy with _____ on their roofs.",
    "Student: I would like to learn more about how the panels actually work.",
    "Tutor: We can read a short article about solar power in our next class.",
    "Student: That sounds useful, and I can share it with my whole community.",
    "Tutor: Great idea, small steps like that really help the whole city change.",
]
GAP_ANSWERS = ["energy", "climate", "walk", "panels", "pollution", "solar"]

GRAMMAR_JSON = """```json
{
  "grammarPoint": "Present continuous for changing situations",
  "explanation": {
    "form": "Subject + am/is/are + verb-ing.",
    "usage": "Use it for trends and situations that are changing now.",
    "levelNotes": "Common in news about the climate and energy."
  },
  "examples": [
    "Cities are changing the way they use energy.",
    "More people are riding bicycles to work.",
    "Solar power is becoming cheaper every year."
  ],
  "exercises": [
    {"prompt": "Many cities _____ (build) solar farms.", "answer": "are building", "explanation": "Plural subject"},
    {"prompt": "The climate _____ (change) quickly.", "answer": "is changing", "explanation": "Singular subject"},
    {"prompt": "We _____ (use) less energy at home.", "answer": "are using", "explanation": "Plural subject"},
    {"prompt": "My town _____ (buy) electric buses.", "answer": "is buying", "explanation": "Singular subject"},
    {"prompt": "People _____ (recycle) more plastic.", "answer": "are recycling", "explanation": "Plural subject"}
  ]
}
```"""

TONGUE_TWISTERS = (
    "TWISTER_1: Three thrifty thinkers thought through thick green threads\n"
    "SOUNDS_1: /θ/, /r/\n"
    "DIFFICULTY_1: moderate\n\n"
    "TWISTER_2: Seven solar sellers sell sunny solutions slowly\n"
    "SOUNDS_2: /s/\n"
    "DIFFICULTY_2: moderate"
)

EXAMPLE_STARTS = ["Many people", "Our city", "Every family", "Local schools", "Some experts"]
EXAMPLE_FILLER = [
    "and", "climate", "change", "in", "their", "busy", "city", "every",
    "single", "week", "with", "friends", "and", "family", "members", "today",
]
EXAMPLE_LENGTH = {"A1": 8, "A2": 10, "B1": 12, "B2": 15, "C1": 18}


def example_sentences(word: str, count: int, tier: str) -> List[str]:
    """``count`` on-topic sentences using ``word``, sized for the tier."""
    length = EXAMPLE_LENGTH[tier]
    sentences = []
    for start in EXAMPLE_STARTS[:count]:
        tokens = start.split() + ["often", "talk", "about", word.lower()]
        tokens += EXAMPLE_FILLER[: length - len(tokens)]
        sentences.append(" ".join(tokens) + ".")
    return sentences


def pronunciation_block(word: str) -> str:
    return (
        f"WORD: {word}\n"
        f"IPA: /{word.lower()}/\n"
        "DIFFICULT_SOUNDS: /θ/, /r/\n"
        "TIP_1: Put your tongue between your teeth for the th sound.\n"
        "TIP_2: Curl your tongue back slightly for the r sound.\n"
        f"PRACTICE: We talked about {word} during our climate project."
    )


Step = Union[str, BaseException, Callable[[str, Optional[int]], str]]
Responder = Callable[[str, Optional[int]], str]


def sequence(*steps: Step) -> Responder:
    """Responder that plays ``steps`` in order and then repeats the last one.

    A step is returned text, an exception to raise, or a callable taking
    ``(prompt, budget)``.
    """
    remaining = list(steps)

    def respond(prompt: str, budget: Optional[int]) -> str:
        step = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(prompt, budget)
        return step

    return respond


def _lines(items: List[str]) -> str:
    return "\n".join(items)


def _examples(prompt: str, budget: Optional[int]) -> str:
    match = re.search(r'Create (\d+) sentences using "([^"]+)" for (A1|A2|B1|B2|C1) level', prompt)
    count, word, tier = int(match.group(1)), match.group(2), match.group(3)
    return _lines(example_sentences(word, count, tier))


def _gap_answers(prompt: str, budget: Optional[int]) -> str:
    count = int(re.search(r"This dialogue has (\d+) gaps", prompt).group(1))
    return _lines(GAP_ANSWERS[:count])


def _pronunciation(prompt: str, budget: Optional[int]) -> str:
    word = re.search(r'for the word "([^"]+)"', prompt).group(1)
    return pronunciation_block(word)


# Checked in order: follow-up and gap-answer prompts quote other prompts' text
DEFAULT_RESPONSES: List[Tuple[str, Responder]] = [
    ("gaps marked with _____", _gap_answers),
    ("follow-up discussion questions", lambda p, b: _lines(FOLLOW_UP)),
    ("Summarize this text", lambda p, b: SUMMARY),
    ("Extract 8-12 key vocabulary", lambda p, b: _lines(VOCABULARY)),
    ("Identify 3-5 main themes", lambda p, b: _lines(THEMES)),
    ("Create a lesson title", lambda p, b: f'"{TITLE}"'),
    ("warm-up questions", lambda p, b: _lines(OPENING)),
    ('Define "', lambda p, b: "Something people talk about when they discuss the environment."),
    ('sentences using "', _examples),
    ("Rewrite this text", lambda p, b: PASSAGE),
    ("comprehension questions", lambda p, b: _lines(COMPREHENSION)),
    ("discussion questions for", lambda p, b: _lines(DISCUSSION)),
    ("fill-in-the-gap exercises", lambda p, b: _lines(FILL_GAP_DIALOGUE)),
    ("natural conversation", lambda p, b: _lines(DIALOGUE)),
    ("Identify ONE grammar point", lambda p, b: GRAMMAR_JSON),
    ("Create pronunciation practice", _pronunciation),
    ("tongue twisters", lambda p, b: TONGUE_TWISTERS),
    ("wrap-up questions", lambda p, b: _lines(CLOSING)),
]


class FakeAdapter:
    """In-memory ``TextGenerationAdapter`` with per-prompt overrides.

    Attributes:
        calls: ``(prompt, budget)`` for every invocation, in order
    """

    def __init__(self, overrides: Optional[Dict[str, Responder]] = None):
        self.overrides = dict(overrides or {})
        self.calls: List[Tuple[str, Optional[int]]] = []

    async def invoke(self, prompt: str, max_output_units: Optional[int] = None) -> str:
        self.calls.append((prompt, max_output_units))
        # Yield to the loop like a real network call would
        await asyncio.sleep(0)
        for marker, respond in list(self.overrides.items()) + DEFAULT_RESPONSES:
            if marker in prompt:
                return respond(prompt, max_output_units)
        raise ValueError(f"Unexpected prompt: {prompt[:80]!r}")

    def calls_matching(self, marker: str) -> List[Tuple[str, Optional[int]]]:
        return [call for call in self.calls if marker in call[0]]
