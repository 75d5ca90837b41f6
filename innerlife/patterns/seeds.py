"""Protected starting patterns loaded by ``PatternLibrary.initialize``.

Each builder returns fresh records with new ids on every call.
"""

from __future__ import annotations

from innerlife.patterns.schemas import (
    ActionStep,
    BehaviorPattern,
    BetweenCondition,
    ContainsCondition,
    CreatedBy,
    EmotionalResponse,
    EmotionalTrigger,
    EmotionPattern,
    EqualsCondition,
    ExpectedOutcome,
    GreaterCondition,
    LessCondition,
    RandomTrigger,
    SituationDescriptor,
    SpeechPattern,
    TimeBasedTrigger,
    UrgeRange,
    UrgeThresholdTrigger,
)
from innerlife.types import Emotion, TimeOfDay, Urge

E = Emotion
T = TimeOfDay
U = Urge
INITIAL = CreatedBy.INITIAL


def _weights(joy, melancholy, curiosity, peace, anxiety, loneliness) -> dict[Emotion, float]:
    return {
        E.JOY: joy,
        E.MELANCHOLY: melancholy,
        E.CURIOSITY: curiosity,
        E.PEACE: peace,
        E.ANXIETY: anxiety,
        E.LONELINESS: loneliness,
    }


def initial_speech_patterns() -> list[SpeechPattern]:
    def speech(template, examples, conditions, weights, can_mutate=True):
        return SpeechPattern(
            template=template,
            examples=examples,
            conditions=conditions,
            emotional_weight=weights,
            created_by=INITIAL,
            can_mutate=can_mutate,
        )

    return [
        # Feelings
        speech(
            "...{{emotion_word}}",
            ["...happy", "...kind of lonely", "...a bit uneasy"],
            [GreaterCondition(kind="emotion", threshold=0.5, weight=1.0)],
            _weights(0.5, 0.5, 0.3, 0.3, 0.4, 0.4),
        ),
        speech(
            "somehow I feel {{emotion_word}}",
            ["somehow I feel happy", "somehow I feel lonely"],
            [BetweenCondition(kind="emotion", min=0.3, max=0.6, weight=0.8)],
            _weights(0.3, 0.3, 0.2, 0.4, 0.2, 0.3),
        ),
        # Observation
        speech(
            "looking at the {{object}}",
            ["looking at the window", "looking at the bookshelf", "looking at the sky"],
            [EqualsCondition(kind="activity", value="look_at", weight=1.0)],
            _weights(0.1, 0.1, 0.4, 0.5, 0.1, 0.1),
        ),
        speech(
            "the {{object}} is {{observation}}",
            ["the sky is blue", "it is quiet outside", "the room is dim"],
            [EqualsCondition(kind="activity", value="look_outside", weight=0.8)],
            _weights(0.1, 0.2, 0.3, 0.6, 0.1, 0.2),
        ),
        # Thinking
        speech(
            "thinking about {{topic}}",
            ["thinking about music", "thinking about poems", "thinking about the world"],
            [EqualsCondition(kind="activity", value="think", weight=1.0)],
            _weights(0.1, 0.2, 0.6, 0.3, 0.1, 0.1),
        ),
        speech(
            "...I wonder why",
            ["...I wonder why"],
            [EqualsCondition(kind="emotion", value="curiosity", weight=0.9)],
            _weights(0.0, 0.1, 0.9, 0.1, 0.2, 0.1),
            can_mutate=False,
        ),
        # Wants
        speech(
            "I want to {{action}}",
            ["I want to sing", "I want to read", "I want to rest", "I want to look outside"],
            [GreaterCondition(kind="urge", threshold=0.6, weight=1.0)],
            _weights(0.2, 0.0, 0.3, 0.2, 0.0, 0.0),
        ),
        speech(
            "I'm sort of in the mood to {{action}}",
            ["I'm sort of in the mood to sing", "I'm sort of in the mood to move"],
            [BetweenCondition(kind="urge", min=0.4, max=0.7, weight=0.7)],
            _weights(0.3, 0.0, 0.2, 0.3, 0.0, 0.0),
        ),
        # Memory
        speech(
            "I remembered {{memory}}",
            ["I remembered that poem", "I remembered that song"],
            [EqualsCondition(kind="activity", value="remember", weight=1.0)],
            _weights(0.2, 0.3, 0.1, 0.3, 0.0, 0.3),
        ),
        # Time of day
        speech(
            "morning...{{feeling}}",
            ["morning...so bright", "morning...it's quiet"],
            [EqualsCondition(kind="time", value="morning", weight=1.0)],
            _weights(0.3, 0.1, 0.2, 0.5, 0.1, 0.1),
        ),
        speech(
            "night again...{{feeling}}",
            ["night again...so quiet", "night again...a little lonely"],
            [EqualsCondition(kind="time", value="night", weight=1.0)],
            _weights(0.1, 0.3, 0.1, 0.4, 0.2, 0.4),
        ),
        # Visitors
        speech(
            "someone's here...{{feeling}}",
            ["someone's here...I'm glad", "someone's here...I'm nervous"],
            [EqualsCondition(kind="visitor", value=True, weight=1.0)],
            _weights(0.5, 0.0, 0.4, 0.2, 0.3, 0.0),
        ),
        speech(
            "alone again...{{feeling}}",
            ["alone again...it got quiet", "alone again...a little lonely"],
            [EqualsCondition(kind="visitor", value=False, weight=0.8)],
            _weights(0.0, 0.3, 0.1, 0.4, 0.1, 0.6),
        ),
        # Reading
        speech(
            "this book is {{impression}}",
            ["this book is interesting", "this book is hard", "this book is beautiful"],
            [EqualsCondition(kind="activity", value="read_book", weight=1.0)],
            _weights(0.3, 0.1, 0.5, 0.4, 0.0, 0.0),
        ),
        # Singing
        speech(
            "♪...{{lyric}}",
            ["♪...on a quiet night", "♪...beyond the window"],
            [EqualsCondition(kind="activity", value="sing", weight=1.0)],
            _weights(0.4, 0.2, 0.1, 0.4, 0.0, 0.2),
        ),
        # Existential
        speech(
            "I am...{{existential}}",
            ["I am...what, I wonder", "I am...here", "I am...alive?"],
            [
                ContainsCondition(kind="emotion", values=["melancholy"], weight=0.6),
                ContainsCondition(kind="time", values=["night", "late_night"], weight=0.3),
            ],
            _weights(0.0, 0.3, 0.4, 0.2, 0.3, 0.4),
        ),
        # Spacing out
        speech(
            "......",
            ["......"],
            [
                LessCondition(kind="emotion", threshold=0.3, weight=0.7),
                EqualsCondition(kind="activity", value=None, weight=0.5),
            ],
            _weights(0.0, 0.1, 0.0, 0.6, 0.0, 0.1),
            can_mutate=False,
        ),
        # Singer at heart
        speech(
            "I want to make a new song...about {{theme}}",
            ["I want to make a new song...about the sky", "I want to make a new song...about dreams"],
            [
                GreaterCondition(kind="urge", threshold=0.5, weight=0.8),
                ContainsCondition(kind="emotion", values=["curiosity"], weight=0.5),
            ],
            _weights(0.4, 0.1, 0.7, 0.3, 0.1, 0.0),
        ),
        speech(
            "songs are...{{thought}}",
            ["songs are...how I say what words can't", "songs are...part of me"],
            [ContainsCondition(kind="activity", values=["sing", "hum", "remember"], weight=0.9)],
            _weights(0.3, 0.2, 0.3, 0.5, 0.0, 0.1),
        ),
    ]


def initial_behavior_patterns() -> list[BehaviorPattern]:
    def behavior(description, steps, triggers, outcome, satisfaction):
        return BehaviorPattern(
            description=description,
            action_sequence=steps,
            triggers=triggers,
            expected_outcome=outcome,
            average_satisfaction=satisfaction,
            created_by=INITIAL,
        )

    return [
        behavior(
            "pick a book and read",
            [
                ActionStep(action="move_to", target="bookshelf", duration=5),
                ActionStep(action="look_at", target="books", duration=3,
                           thought_during="what should I read..."),
                ActionStep(action="pick_up", target="random_book", duration=2, interruptible=False),
                ActionStep(action="sit_down", duration=2),
                ActionStep(action="read_book", duration=60, thought_during="{{book_content}}"),
            ],
            [
                UrgeThresholdTrigger(urge=U.CURIOSITY, threshold=0.6, probability=0.7),
                TimeBasedTrigger(times=[T.MORNING, T.AFTERNOON], probability=0.4),
            ],
            ExpectedOutcome(urges_satisfied=[U.CURIOSITY, U.UNDERSTANDING],
                            mood_primary=E.PEACE, valence_delta=0.2, energy_cost=0.1),
            0.7,
        ),
        behavior(
            "stand up and sing",
            [
                ActionStep(action="stand_up", duration=2),
                ActionStep(action="move_to", target="center", duration=3),
                ActionStep(action="sing", duration=30, thought_during="♪..."),
            ],
            [
                UrgeThresholdTrigger(urge=U.EXPRESSION, threshold=0.5, probability=0.8),
                EmotionalTrigger(emotion=E.JOY, intensity=0.5, probability=0.5),
            ],
            ExpectedOutcome(urges_satisfied=[U.EXPRESSION], mood_primary=E.JOY,
                            valence_delta=0.3, energy_cost=0.2),
            0.8,
        ),
        behavior(
            "gaze out of the window",
            [
                ActionStep(action="move_to", target="window", duration=4),
                ActionStep(action="look_outside", duration=20, thought_during="the world outside..."),
            ],
            [
                UrgeThresholdTrigger(urge=U.EXPLORATION, threshold=0.4, probability=0.6),
                TimeBasedTrigger(times=[T.DAWN, T.EVENING], probability=0.5),
                EmotionalTrigger(emotion=E.LONELINESS, intensity=0.4, probability=0.4),
            ],
            ExpectedOutcome(urges_satisfied=[U.EXPLORATION], mood_primary=E.PEACE,
                            valence_delta=0.0, energy_cost=0.05),
            0.6,
        ),
        behavior(
            "lie down and rest",
            [
                ActionStep(action="move_to", target="bed", duration=5),
                ActionStep(action="lie_down", duration=3, interruptible=False),
                ActionStep(action="rest", duration=45, thought_during="so tired..."),
            ],
            [
                UrgeThresholdTrigger(urge=U.REST, threshold=0.7, probability=0.9),
                TimeBasedTrigger(times=[T.NIGHT, T.LATE_NIGHT], probability=0.6),
            ],
            ExpectedOutcome(urges_satisfied=[U.REST, U.COMFORT], mood_primary=E.PEACE,
                            valence_delta=0.1, energy_cost=-0.3),
            0.7,
        ),
        behavior(
            "wander around the room",
            [
                ActionStep(action="stand_up", duration=2),
                ActionStep(action="wander", duration=20, thought_during="..."),
            ],
            [
                UrgeThresholdTrigger(urge=U.MOVE, threshold=0.5, probability=0.7),
                EmotionalTrigger(emotion=E.BOREDOM, intensity=0.4, probability=0.5),
            ],
            ExpectedOutcome(urges_satisfied=[U.MOVE], mood_primary=E.PEACE,
                            valence_delta=0.05, energy_cost=0.15),
            0.5,
        ),
        behavior(
            "write in the diary",
            [
                ActionStep(action="move_to", target="desk", duration=4),
                ActionStep(action="sit_down", duration=2),
                ActionStep(action="pick_up", target="pen", duration=1, interruptible=False),
                ActionStep(action="write_diary", duration=30, thought_during="today was..."),
                ActionStep(action="put_down", target="pen", duration=1, interruptible=False),
            ],
            [
                TimeBasedTrigger(times=[T.EVENING, T.NIGHT], probability=0.7),
                TimeBasedTrigger(times=[T.LATE_NIGHT], probability=0.9),
            ],
            ExpectedOutcome(urges_satisfied=[U.EXPRESSION, U.MEMORY], mood_primary=E.PEACE,
                            valence_delta=0.1, energy_cost=0.1),
            0.75,
        ),
        behavior(
            "look things up on the PC",
            [
                ActionStep(action="move_to", target="pc", duration=4),
                ActionStep(action="sit_down", duration=2),
                ActionStep(action="use_pc", duration=5),
                ActionStep(action="search_wikipedia", duration=10,
                           thought_during="what should I look up..."),
                ActionStep(action="read_article", duration=40, thought_during="{{article_content}}"),
            ],
            [
                UrgeThresholdTrigger(urge=U.CURIOSITY, threshold=0.7, probability=0.6),
                UrgeThresholdTrigger(urge=U.UNDERSTANDING, threshold=0.6, probability=0.5),
            ],
            ExpectedOutcome(urges_satisfied=[U.CURIOSITY, U.UNDERSTANDING, U.EXPLORATION],
                            mood_primary=E.CURIOSITY, valence_delta=0.2, energy_cost=0.15),
            0.8,
        ),
        behavior(
            "hum a tune",
            [ActionStep(action="hum", duration=15, thought_during="♪...")],
            [
                EmotionalTrigger(emotion=E.PEACE, intensity=0.4, probability=0.4),
                RandomTrigger(chance=0.1, probability=0.1),
            ],
            ExpectedOutcome(urges_satisfied=[U.EXPRESSION], mood_primary=E.PEACE,
                            valence_delta=0.1, energy_cost=0.05),
            0.6,
        ),
    ]


def initial_emotion_patterns() -> list[EmotionPattern]:
    def mood(situation, primary, intensity, duration, thoughts):
        return EmotionPattern(
            situation=situation,
            response=EmotionalResponse(
                primary=primary, intensity=intensity,
                duration=duration, associated_thoughts=thoughts,
            ),
            created_by=INITIAL,
        )

    return [
        mood(SituationDescriptor(times_of_day=[T.DAWN, T.MORNING]),
             E.PEACE, 0.5, 60, ["a new day begins", "a quiet morning"]),
        mood(SituationDescriptor(times_of_day=[T.NIGHT, T.LATE_NIGHT]),
             E.MELANCHOLY, 0.4, 60, ["a quiet night", "time alone"]),
        mood(SituationDescriptor(visitor_present=True),
             E.WARMTH, 0.6, 30, ["someone is here", "I want to talk"]),
        mood(SituationDescriptor(visitor_present=False, recent_events=["visitor_departed"]),
             E.LONELINESS, 0.5, 45, ["alone again", "I miss them"]),
        mood(SituationDescriptor(urge_ranges={U.MOVE: UrgeRange(min=0.6, max=1.0)}),
             E.BOREDOM, 0.4, 30, ["I want to move", "I want to do something"]),
        mood(SituationDescriptor(recent_events=["book_finished"]),
             E.CONTENTMENT, 0.6, 20, ["finished it", "that was a good book"]),
        mood(SituationDescriptor(recent_events=["knowledge_acquired"]),
             E.CURIOSITY, 0.7, 30, ["interesting", "I want to know more"]),
        mood(SituationDescriptor(recent_events=["singing_completed"]),
             E.JOY, 0.6, 25, ["that felt good", "I love singing"]),
    ]
