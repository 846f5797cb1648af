# Learning System Prompts
from .learning_prompts import (
    build_roadmap_prompt,
    build_chapter_list_prompt,
    build_chapter_content_prompt,
    build_study_notes_prompt,
    MAX_NOTES_CONCEPTS
)

__all__ = [
    'build_roadmap_prompt',
    'build_chapter_list_prompt',
    'build_chapter_content_prompt',
    'build_study_notes_prompt',
    'MAX_NOTES_CONCEPTS'
]
