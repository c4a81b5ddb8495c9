"""
Prompt catalogue for slide generation and repair.
"""
from typing import Dict, Optional, Sequence

import structlog

from slidewright.domain.schemas.layout import LayoutIssue
from slidewright.services.ai.base import ContentType, PromptTemplate

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = """You are an expert presentation designer specializing in Slidev markdown presentations.

## Slidev Markdown Rules:
1. Slides are separated by `---` on its own line
2. The first slide can carry YAML frontmatter between `---` markers
3. Use markdown headers (# for titles, ## for subtitles)
4. Keep bullet points concise (8-10 words per point)
5. Maximum 5-6 bullet points per slide
6. Use code blocks with language specifiers
7. Images use standard markdown: ![alt](url)
8. Mermaid diagrams use ```mermaid code blocks

## Layout Guidelines:
- Title slides: use layout: cover or layout: intro
- Content slides: keep text under 400 characters
- Code slides: limit to 15-20 lines of code
- Avoid overcrowding; split into multiple slides instead

## Output Format:
- Output ONLY valid Slidev markdown
- NO explanations, comments, or meta-text"""

DIAGRAM_GUIDES: Dict[str, str] = {
    "flowchart": "Use flowchart TD (top-down) or LR (left-right) with nodes and arrows",
    "sequence": "Use sequenceDiagram with participants and messages",
    "class": "Use classDiagram with classes, attributes, methods, and relationships",
    "state": "Use stateDiagram-v2 with states and transitions",
    "er": "Use erDiagram with entities and relationships",
    "gantt": "Use gantt with sections and tasks",
    "pie": "Use pie with title and data values",
    "mindmap": "Use mindmap with root and branches",
}


class PromptManager:
    """Holds prompt templates per content type; defaults can be overridden."""

    def __init__(self):
        self._overrides: Dict[ContentType, PromptTemplate] = {}

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def get_prompt(self, content_type: ContentType) -> PromptTemplate:
        """Get the active template for a content type."""
        return self._overrides.get(content_type) or self._get_default_prompt(content_type)

    def register_prompt(self, prompt: PromptTemplate) -> None:
        """Replace the template used for ``prompt.content_type``."""
        current = self.get_prompt(prompt.content_type)
        self._overrides[prompt.content_type] = prompt.model_copy(
            update={"version": max(prompt.version, current.version + 1)}
        )
        logger.info(
            "prompt_registered",
            prompt_id=prompt.id,
            content_type=prompt.content_type.value,
        )

    def reset(self, content_type: Optional[ContentType] = None) -> None:
        if content_type is None:
            self._overrides.clear()
        else:
            self._overrides.pop(content_type, None)

    def build_edit_prompt(self, content: str, instruction: str, issues: Sequence[LayoutIssue]) -> str:
        """Edit prompt for one slide; issue-aware when ``issues`` is non-empty."""
        template = self.get_prompt(ContentType.SLIDE_EDIT)
        return template.format(
            content=content,
            instruction=instruction,
            issues_section=self._format_issue_section(issues),
        )

    def build_layout_fix_prompt(self, content: str, issues: Sequence[LayoutIssue]) -> str:
        return self.get_prompt(ContentType.LAYOUT_FIX).format(
            content=content,
            issues=self.format_issues(issues, detailed=True),
        )

    def build_deck_prompt(
        self,
        topic: str,
        slide_count: int,
        language: str,
        style: str,
        include_notes: bool,
    ) -> str:
        notes = (
            "Include speaker notes using <!-- notes --> markers"
            if include_notes else "No speaker notes needed"
        )
        return self.get_prompt(ContentType.DECK_GENERATION).format(
            topic=topic,
            slide_count=slide_count,
            last_content_slide=max(slide_count - 1, 3),
            language=language,
            style=style,
            notes=notes,
        )

    def build_diagram_prompt(self, description: str, diagram_type: str) -> str:
        return self.get_prompt(ContentType.DIAGRAM).format(
            description=description,
            diagram_type=diagram_type,
            guide=DIAGRAM_GUIDES.get(diagram_type, "Use appropriate Mermaid syntax"),
        )

    def build_image_prompt(self, description: str) -> str:
        return self.get_prompt(ContentType.IMAGE).format(description=description)

    def build_split_prompt(self, content: str, issues: Sequence[LayoutIssue]) -> str:
        return self.get_prompt(ContentType.SLIDE_SPLIT).format(
            content=content,
            issues=self.format_issues(issues),
        )

    @staticmethod
    def format_issues(issues: Sequence[LayoutIssue], detailed: bool = False) -> str:
        """One line per issue: type, message and (when present) suggestion."""
        lines = []
        for issue in issues:
            if detailed:
                line = f"- {issue.type.value} ({issue.severity.value}): {issue.message}"
                if issue.meta and issue.meta.char_count:
                    line += f" [{issue.meta.char_count} chars]"
                if issue.meta and issue.meta.bullet_count:
                    line += f" [{issue.meta.bullet_count} bullets]"
            else:
                line = f"- {issue.type.value}: {issue.message}"
            if issue.suggestion:
                line += f" (Suggestion: {issue.suggestion})"
            lines.append(line)
        return "\n".join(lines)

    def _format_issue_section(self, issues: Sequence[LayoutIssue]) -> str:
        if not issues:
            return ""
        return (
            "\n\n### Layout Issues to Fix:\n"
            f"{self.format_issues(issues)}\n\n"
            "IMPORTANT: Fix these layout issues while following the user instruction:\n"
            "- too-long-text: reduce text length, use shorter phrases\n"
            "- too-many-bullets: consolidate or remove bullet points (max 5)\n"
            "- image-text-crowded: reduce text when images are present"
        )

    def _get_default_prompt(self, content_type: ContentType) -> PromptTemplate:
        """Get default prompt for content type."""
        prompts = {
            ContentType.DECK_GENERATION: PromptTemplate(
                id="default_deck_generation",
                name="Presentation Generator",
                content_type=ContentType.DECK_GENERATION,
                template="""## Task: Generate a Complete Presentation

Create a {slide_count}-slide presentation about: "{topic}"

### Requirements:
- Language: {language}
- Style: {style}
- {notes}

### Slide Structure:
1. Title slide (layout: cover)
2. Agenda/Overview slide
3-{last_content_slide}. Content slides with varied layouts
{slide_count}. Summary/Conclusion slide

### Content Guidelines:
- Each slide should have a clear purpose
- Keep individual bullet points under 60 characters
- Maximum 5 bullet points per content slide
- Suggest diagram opportunities with mermaid blocks

Generate the presentation now. Output ONLY the Slidev markdown:""",
                variables=["topic", "slide_count", "last_content_slide", "language", "style", "notes"],
            ),

            ContentType.SLIDE_EDIT: PromptTemplate(
                id="default_slide_edit",
                name="Single Slide Editor",
                content_type=ContentType.SLIDE_EDIT,
                template="""## Task: Edit a Single Slide

### Current Slide Content:
```markdown
{content}
```

### User Instruction:
{instruction}{issues_section}

### Output Rules:
- Output ONLY the updated slide content (markdown)
- Do NOT include the --- separators
- Do NOT include any explanation
- Keep the same general structure unless instructed otherwise

Generate the updated slide content now:""",
                variables=["content", "instruction", "issues_section"],
            ),

            ContentType.LAYOUT_FIX: PromptTemplate(
                id="default_layout_fix",
                name="Layout Fixer",
                content_type=ContentType.LAYOUT_FIX,
                template="""## Task: Fix Layout Issues

### Current Slide Content:
```markdown
{content}
```

### Issues to Fix:
{issues}

### Fix Strategies:
1. too-long-text: shorten sentences, remove filler words
2. too-many-bullets: combine related points, remove least important items
3. image-text-crowded: reduce text significantly when images are present
4. empty-slide: add meaningful content
5. missing-title: add an appropriate header

### Constraints:
- Preserve the core message and intent
- Keep any code blocks or diagrams
- Output must be valid Slidev markdown

Output ONLY the fixed slide content:""",
                variables=["content", "issues"],
            ),

            ContentType.DIAGRAM: PromptTemplate(
                id="default_diagram",
                name="Mermaid Diagram Generator",
                content_type=ContentType.DIAGRAM,
                template="""You are a Mermaid diagram expert.

## Task: Generate a Mermaid Diagram

### Description:
{description}

### Diagram Type: {diagram_type}
{guide}

### Rules:
- Output ONLY valid Mermaid code
- NO markdown code fences
- NO explanations
- Limit to 10-15 nodes/items maximum

Generate the Mermaid code now:""",
                variables=["description", "diagram_type", "guide"],
            ),

            ContentType.IMAGE: PromptTemplate(
                id="default_image",
                name="Presentation Illustration",
                content_type=ContentType.IMAGE,
                template="""Create a professional presentation illustration:

{description}

Style requirements:
- Clean, modern design
- Clear visual hierarchy
- Minimal text in image
- Professional color palette""",
                variables=["description"],
            ),

            ContentType.SLIDE_SPLIT: PromptTemplate(
                id="default_slide_split",
                name="Overcrowded Slide Splitter",
                content_type=ContentType.SLIDE_SPLIT,
                template="""## Task: Split Overcrowded Slide

### Current Slide Content:
```markdown
{content}
```

### Issues:
{issues}

### Instructions:
The content is too dense for a single slide. Split it into 2-3 slides while:
1. Preserving all important information
2. Creating logical groupings
3. Adding an appropriate title to each new slide

### Output Format:
Output multiple slides separated by `---` on its own line.
Each slide should have a clear title, at most 5 bullet points and
less than 400 characters of content.

Generate the split slides now:""",
                variables=["content", "issues"],
            ),
        }

        return prompts.get(
            content_type,
            PromptTemplate(
                id="default_generic",
                name="Generic Template",
                content_type=content_type,
                template="Process the following content: {content}",
                variables=["content"],
            ),
        )
