from uploadai import types as t

TITLE_PROMPT = """Your job is to write three titles for a YouTube video.

Below you will receive the transcription of the video. Use it to write the titles.
Each title must be at most 60 characters long and catchy enough to maximize clicks.

Return ONLY the three titles as a list, like this:
'''
- Title 1
- Title 2
- Title 3
'''

Transcription:
'''
{transcription}
'''"""

DESCRIPTION_PROMPT = """Your job is to write a succinct description for a YouTube video.

Below you will receive the transcription of the video. Use it to write the description.
The description must be at most 80 words, written in the first person, and include the main points of the video.
Use attention-grabbing words that make the reader want to watch.
At the end of the description, add a list of 3 to 10 lowercase hashtags with keywords from the video.

Return in this format:
'''
Description.

#hashtag1 #hashtag2 #hashtag3 ...
'''

Transcription:
'''
{transcription}
'''"""

PROMPTS = [
    t.PromptTemplate(id="youtube-title", title="YouTube title", template=TITLE_PROMPT),
    t.PromptTemplate(id="youtube-description", title="YouTube description", template=DESCRIPTION_PROMPT),
]


def all_prompts() -> list[t.PromptTemplate]:
    return list(PROMPTS)


def get(prompt_id: str) -> t.PromptTemplate | None:
    return next((p for p in PROMPTS if p.id == prompt_id), None)
