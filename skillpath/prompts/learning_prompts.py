"""
Prompt templates for the learning system.
Each builder returns a prompt whose reply is a single JSON object.
"""

from typing import List, Optional

from skillpath.models.learning_models import RoadmapNode

MAX_NOTES_CONCEPTS = 8


def _format_roadmap(roadmap: List[RoadmapNode]) -> str:
    lines = []
    for node in roadmap:
        topics = f" (topics: {', '.join(node.key_topics)})" if node.key_topics else ""
        description = f": {node.description}" if node.description else ""
        lines.append(f"{node.order + 1}. {node.title}{description}{topics}")
    return "\n".join(lines)


def build_roadmap_prompt(subject_name: str, difficulty: str) -> str:
    """Build prompt for a subject's learning roadmap"""

    return f"""You are an expert educator creating a comprehensive learning roadmap for "{subject_name}" at {difficulty} level.

Generate a structured learning path. Return ONLY valid JSON in this exact format:

{{
  "description": "One sentence describing the subject",
  "overview": "A 2-3 paragraph overview of what the student will learn and why it's important",
  "roadmap": [
    {{
      "title": "Step title",
      "description": "1-2 sentences on what this step covers",
      "keyTopics": ["Topic 1", "Topic 2"]
    }}
  ],
  "tips": ["Tip 1 for success", "Tip 2"],
  "estimatedTotalHours": 40
}}

Requirements:
- Create 6-10 roadmap steps that cover the subject comprehensively
- Each step should build on the previous one
- Include practical, hands-on content
- Make it suitable for {difficulty} learners
- Ensure JSON is valid (no trailing commas, proper escaping)"""


def build_chapter_list_prompt(
    subject_name: str,
    difficulty: str,
    roadmap: List[RoadmapNode]
) -> str:
    """Build prompt that expands a roadmap into one chapter per step"""

    return f"""You are an expert educator turning a learning roadmap for "{subject_name}" ({difficulty} level) into course chapters.

ROADMAP:
{_format_roadmap(roadmap)}

Create exactly one chapter per roadmap step, in roadmap order. Return ONLY valid JSON in this exact format:

{{
  "chapters": [
    {{
      "roadmapStep": 1,
      "title": "Chapter title",
      "description": "2-3 sentence description of what this chapter covers",
      "estimatedMinutes": 60,
      "keyTopics": ["Topic 1", "Topic 2"]
    }}
  ]
}}

Requirements:
- "roadmapStep" is the 1-based number of the roadmap step the chapter covers
- Titles are specific and descriptive
- Include practical, hands-on content
- Ensure JSON is valid"""


def build_chapter_content_prompt(
    subject_name: str,
    chapter_title: str,
    chapter_description: str,
    roadmap: Optional[List[RoadmapNode]] = None
) -> str:
    """Build prompt for a chapter's overview and concepts"""

    roadmap_section = f"""
COURSE ROADMAP (for context):
{_format_roadmap(roadmap)}
""" if roadmap else ""

    return f"""You are an expert educator creating detailed content for a chapter in a "{subject_name}" course.

Chapter: "{chapter_title}"
Description: {chapter_description}
{roadmap_section}
Generate comprehensive chapter content. Return ONLY valid JSON in this exact format:

{{
  "overview": "A detailed 3-4 paragraph overview of this chapter in markdown",
  "concepts": [
    "Concept 1: Brief explanation",
    "Concept 2: Brief explanation"
  ],
  "prerequisites": ["What students should know before this chapter"],
  "learningObjectives": ["By the end, students will be able to..."]
}}

Requirements:
- The overview should be detailed and educational (300-500 words)
- List 5-10 key concepts with brief explanations
- Include 2-4 prerequisites
- Include 3-5 clear learning objectives
- Ensure JSON is valid"""


def build_study_notes_prompt(
    subject_name: str,
    chapter_title: str,
    overview: str,
    concepts: List[str]
) -> str:
    """Build prompt for a chapter's study notes. Only the first 8 concepts are sent."""

    concepts_list = ", ".join(concepts[:MAX_NOTES_CONCEPTS])

    return f"""You are an expert educator creating comprehensive study notes for a chapter in a "{subject_name}" course.

Chapter: "{chapter_title}"
Chapter Overview:
{overview}

Key Concepts to Cover: {concepts_list}

Return this exact JSON structure, with no text before or after it:

{{
  "notes": "# {chapter_title}\\n\\n## Introduction\\n...\\n\\n## Key Concepts\\n...\\n\\n## Practical Examples\\n...\\n\\n## Key Takeaways\\n- ...\\n\\n## Practice Questions\\n1. ...\\n\\n## Summary\\n..."
}}

Requirements for the "notes" content:
- Write 800-1500 words of educational content in markdown
- Explain each concept clearly: {concepts_list}
- Include 2-3 practical examples with code snippets if relevant
- Add 5-8 key takeaway bullet points
- Include 3-5 self-assessment questions
- End with a concise summary
- Use \\n for line breaks and \\" for quotes within the string"""
