"""
Prompts for finding and pre-screening candidate videos.

Used by: orchestrator.generate_search_queries, evaluate_videos
"""

from .base import PromptTemplate


GENERATE_SEARCH_QUERIES = PromptTemplate(
    template="""You curate educational content for a short-form learning app. Write search queries that find high-quality, Creative Commons licensed educational videos.

Target languages: {languages}
Write each query naturally in its own language, e.g.
- ko: "코틀린 프로그래밍 입문"
- en: "kotlin programming beginner tutorial"
- ja: "Kotlin プログラミング 入門"

App categories: {app_categories}
Popular keywords: {popular_keywords}
Top performing tags: {top_performing_tags}
Seasonal context: {seasonal_context}
Underrepresented categories: {underrepresented_categories}
Recently published: {recently_published}

Diversity rules:
1. Balance hard skills (programming, finance, history, languages) and soft skills (motivation, mindset, psychology) roughly 50:50
2. Fill the underrepresented categories first
3. Use the seasonal context where it fits
4. Prefer storytelling over dry lectures
5. At least 3 queries per target language
6. Avoid queries that would only find the recently published topics again

Respond with ONLY a JSON array of 15 to 30 queries:
[
  {{
    "query": "search text in the query's language",
    "targetCategory": "category",
    "expectedContentType": "tutorial|lecture|explanation|howto|motivation|inspiration",
    "priority": 1,
    "language": "ko|en|ja"
  }}
]""",
    description="Multilingual discovery queries",
)


EVALUATE_VIDEOS = PromptTemplate(
    template="""You assess the educational value of videos for a short-form learning app.

VIDEOS:
{videos_json}

Score every video, using its "index" from the list:
1. relevanceScore (0-100): fit with an educational platform
2. educationalValue (0-100): what a viewer learns
3. shortFormSuitability (0-100): fast pacing, dense delivery, energy, still complete when cut to 30 seconds to 3 minutes
4. predictedQuality (0-100): expected quality of the final short
5. recommendation: HIGHLY_RECOMMENDED, RECOMMENDED, MAYBE or SKIP
6. reasoning: one sentence

Respond with ONLY a JSON array with one entry per video:
[
  {{
    "index": 0,
    "relevanceScore": 85,
    "educationalValue": 80,
    "shortFormSuitability": 75,
    "predictedQuality": 82,
    "recommendation": "RECOMMENDED",
    "reasoning": "reason"
  }}
]""",
    description="Batch pre-screening of search results",
)
