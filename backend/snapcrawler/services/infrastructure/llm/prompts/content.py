"""
Prompts used while turning one transcript into a short-form clip.

Used by: orchestrator.extract_key_segments, generate_edit_plan,
generate_metadata, generate_quiz
"""

from .base import PromptTemplate


EXTRACT_KEY_SEGMENTS = PromptTemplate(
    template="""You are an editor of short educational videos. From the transcript below, pick the passages that work best as standalone short-form clips.

TRANSCRIPT:
{transcript}

Requirements:
1. Each segment lasts between 30 seconds and 3 minutes
2. Each segment covers one complete idea that makes sense without the rest of the video
3. Prefer dense, energetic explanation over slow or repetitive passages
4. Skip intros, outros and calls to subscribe
5. Return at most 5 segments, best first

Respond with ONLY a JSON array:
[
  {{
    "startTimeMs": 0,
    "endTimeMs": 45000,
    "title": "segment title",
    "description": "what the segment explains",
    "keywords": ["keyword"]
  }}
]""",
    description="Highlight segment extraction",
)


GENERATE_EDIT_PLAN = PromptTemplate(
    template="""You are an editor of short educational videos. Build an edit plan that combines several passages of the video below into ONE short of 30 seconds to 3 minutes.

TRANSCRIPT:
{transcript}
{reviewer_guidance}
Planning rules:
1. Choose 2 to 5 clips; each clip lasts 15 to 60 seconds (never under 10 or over 90)
2. Order the clips so the story flows: setup, development, payoff
3. Drop intros, outros, sponsor reads and anything that needs outside context
4. Favour passages that are both educational and entertaining

Editing strategies:
- "highlight_compilation": strongest highlights back to back
- "story_flow": sequential passages that tell one story
- "tutorial_sequence": condensed tutorial steps
- "problem_solution": problem, solution, conclusion

Respond with ONLY a JSON object:
{{
  "clips": [
    {{
      "orderIndex": 0,
      "startTimeMs": 0,
      "endTimeMs": 30000,
      "title": "clip title",
      "description": "why this clip was chosen"
    }}
  ],
  "totalDurationMs": 30000,
  "editingStrategy": "highlight_compilation|story_flow|tutorial_sequence|problem_solution",
  "transitionStyle": "hard_cut"
}}""",
    description="Multi-clip edit plan",
)


REVIEWER_GUIDANCE = PromptTemplate(
    template="""
A human reviewer sent the previous edit back with this note. Address it:
{note}
""",
    description="Reviewer note appended to the edit plan prompt",
)


GENERATE_METADATA = PromptTemplate(
    template="""You write metadata for short educational videos.

IMPORTANT: {language_instruction}
Target language: {language_name} ({language_code})

CONTENT:
{content}

Respond with ONLY a JSON object written in {language_name}:
{{
  "title": "{title_example} (at most 30 characters or words)",
  "description": "search-friendly description (at most 200 characters or words)",
  "tags": ["up to 10 tags in {language_name}"],
  "category": "{categories}",
  "difficulty": "{difficulties}"
}}""",
    description="Title, description, tags, category, difficulty",
)


GENERATE_QUIZ = PromptTemplate(
    template="""You create one quiz question that checks whether a viewer understood a short educational video.

TITLE: {title}
DESCRIPTION:
{description}

Difficulty: {difficulty}
IMPORTANT: {language_instruction}

Rules:
1. The question must be answerable from the video content alone
2. Give 3 or 4 options; exactly one is correct unless allowMultipleAnswers is true
3. Wrong options must be plausible

Respond with ONLY a JSON object:
{{
  "question": "question text",
  "allowMultipleAnswers": false,
  "options": [
    {{"text": "option", "isCorrect": true}},
    {{"text": "option", "isCorrect": false}}
  ]
}}""",
    description="Comprehension quiz for a published clip",
)


LANGUAGE_INSTRUCTIONS = {
    "ko": "한국어로 작성해주세요.",
    "en": "Write in English.",
    "ja": "日本語で作成してください。",
}

TITLE_EXAMPLES = {
    "ko": "코틀린 입문자를 위한 핵심 가이드",
    "en": "Essential Kotlin Guide for Beginners",
    "ja": "初心者のためのKotlin入門ガイド",
}

NATIVE_LANGUAGE_NAMES = {
    "ko": "한국어",
    "en": "English",
    "ja": "日本語",
}
