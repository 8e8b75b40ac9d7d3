import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from lesson_pipeline.constants import GRAMMAR_OUTPUT_BUDGET
from lesson_pipeline.errors import MalformedResponse
from lesson_pipeline.generators.base import BaseSectionGenerator, SectionInput
from lesson_pipeline.models.schema import SectionName
from lesson_pipeline.models.sections import GrammarExercise, GrammarExplanation, GrammarSection
from lesson_pipeline.prompts.section_prompts import build_grammar_prompt
from lesson_pipeline.utils.backoff import PromptInvoker
from lesson_pipeline.utils.text import load_json_object

logger = logging.getLogger(__name__)


class GrammarGenerator(BaseSectionGenerator):
    """One grammar point with explanation, examples and practice exercises.

    The model answers in JSON; a response cut off by the output limit is
    repaired before parsing.
    """

    section = SectionName.GRAMMAR
    instruction = "Study this grammar point with your tutor, then complete the exercises:"

    async def generate(self, section_input: SectionInput, invoker: PromptInvoker) -> GrammarSection:
        prompt = self.prompt_with_feedback(build_grammar_prompt(section_input.context), section_input)
        response = await invoker(prompt, budget=GRAMMAR_OUTPUT_BUDGET)

        try:
            data = load_json_object(response)
            section = self._to_section(data)
        except (ValueError, ValidationError) as e:
            logger.warning(
                f"Could not parse grammar response: {e}",
                extra={"section": self.section.value, "attempt": section_input.attempt},
            )
            raise MalformedResponse(self.section.value, str(e)) from e

        logger.debug(
            f"Parsed grammar point '{section.grammar_point}' with {len(section.exercises)} exercise(s)",
            extra={"section": self.section.value},
        )
        return section

    def _to_section(self, data: Dict[str, Any]) -> GrammarSection:
        explanation = data.get("explanation") or {}
        if not isinstance(explanation, dict):
            explanation = {"usage": str(explanation)}

        exercises: List[GrammarExercise] = []
        for item in data.get("exercises") or []:
            if isinstance(item, str):
                exercises.append(GrammarExercise(prompt=item))
            elif isinstance(item, dict):
                exercises.append(
                    GrammarExercise(
                        prompt=str(item.get("prompt") or item.get("question") or ""),
                        answer=str(item.get("answer") or ""),
                        explanation=str(item.get("explanation") or ""),
                    )
                )

        return GrammarSection(
            instruction=self.instruction,
            grammar_point=str(data.get("grammarPoint") or data.get("grammar_point") or "").strip(),
            explanation=GrammarExplanation(
                form=str(explanation.get("form") or ""),
                usage=str(explanation.get("usage") or ""),
                level_notes=str(explanation.get("levelNotes") or explanation.get("level_notes") or ""),
            ),
            examples=[str(e).strip() for e in data.get("examples") or [] if str(e).strip()],
            exercises=exercises,
        )
