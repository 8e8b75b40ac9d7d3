from lesson_pipeline.errors import MalformedResponse
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.models.sections import ReadingSection
from lesson_pipeline.prompts.section_prompts import build_reading_prompt
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import strip_code_fences


class ReadingGenerator(BaseSectionGenerator):
    """Rewrites the source excerpt at the learner's tier using lesson vocabulary."""

    section = SectionName.READING
    instruction = (
        "Read the following text carefully. Your tutor will help you with any difficult words or concepts:"
    )

    async def generate(self, section_input: SectionInput, invoker: PromptInvoker) -> ReadingSection:
        prompt = build_reading_prompt(section_input.context, section_input.lesson_vocabulary())
        response = await invoker(self.prompt_with_feedback(prompt, section_input))
        passage = strip_code_fences(response).strip()
        if not passage:
            raise MalformedResponse(self.section.value, "empty passage")
        return ReadingSection(instruction=self.instruction, passage=passage)
