"""Management of the reusable instruction templates."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import SettingsStore
from .models import Prompt, Settings

STRICT_OUTPUT_INSTRUCTION = """CRITICAL INSTRUCTION: You MUST ONLY return the enhanced version of the text.
DO NOT include ANY explanations, introductions, commentary, responses to the user, greetings, farewells, or quotation marks.
DO NOT acknowledge or respond to the user in ANY way.
If you cannot process the text, simply return the original text unchanged."""


class PromptError(RuntimeError):
    """Raised when a prompt operation is invalid, such as deleting the last prompt."""


class PromptStore:
    """Ordered prompt collection with a selected entry, persisted in settings."""

    def __init__(self, store: SettingsStore) -> None:
        self._store = store
        self._store.mutate(_ensure_valid)

    def list(self) -> List[Prompt]:
        return list(self._store.settings.prompts)

    def get(self, prompt_id: str) -> Prompt:
        for prompt in self._store.settings.prompts:
            if prompt.id == prompt_id:
                return prompt
        raise PromptError(f"Prompt with id {prompt_id} not found")

    def find(self, reference: str) -> Prompt:
        """Look a prompt up by id, id prefix, or case-insensitive name."""

        prompts = self._store.settings.prompts
        for prompt in prompts:
            if prompt.id == reference:
                return prompt
        matches = [p for p in prompts if p.id.startswith(reference) or p.name.lower() == reference.lower()]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise PromptError(f"No prompt matches '{reference}'")
        raise PromptError(f"'{reference}' matches more than one prompt")

    @property
    def selected(self) -> Optional[Prompt]:
        settings = self._store.settings
        for prompt in settings.prompts:
            if prompt.id == settings.selected_prompt_id:
                return prompt
        return None

    def select(self, prompt_id: str) -> Prompt:
        prompt = self.get(prompt_id)

        def apply(settings: Settings) -> None:
            settings.selected_prompt_id = prompt.id
            settings.last_used_prompt = prompt.text

        self._store.mutate(apply)
        logging.debug("Selected prompt %s", prompt.name)
        return prompt

    def create(self, name: str, text: str) -> Prompt:
        name, text = name.strip(), text.strip()
        if not name or not text:
            raise PromptError("A prompt needs both a name and text.")
        prompt = Prompt(name=name, text=text)
        self._store.mutate(lambda settings: settings.prompts.append(prompt))
        return prompt

    def edit(self, prompt_id: str, name: Optional[str] = None, text: Optional[str] = None) -> Prompt:
        prompt = self.get(prompt_id)
        if name is not None and not name.strip():
            raise PromptError("Prompt name cannot be empty.")
        if text is not None and not text.strip():
            raise PromptError("Prompt text cannot be empty.")

        def apply(settings: Settings) -> None:
            if name is not None:
                prompt.name = name.strip()
            if text is not None:
                prompt.text = text.strip()
                if settings.selected_prompt_id == prompt.id:
                    settings.last_used_prompt = prompt.text

        self._store.mutate(apply)
        return prompt

    def delete(self, prompt_id: str) -> None:
        prompt = self.get(prompt_id)
        if len(self._store.settings.prompts) <= 1:
            raise PromptError("You must have at least one prompt available.")

        def apply(settings: Settings) -> None:
            settings.prompts = [p for p in settings.prompts if p.id != prompt.id]
            if settings.selected_prompt_id == prompt.id:
                settings.selected_prompt_id = settings.prompts[0].id
                settings.last_used_prompt = settings.prompts[0].text

        self._store.mutate(apply)

    def formatted(self) -> str:
        """Return the instruction text sent ahead of the captured text."""

        settings = self._store.settings
        selected = self.selected
        text = selected.text if selected is not None else settings.last_used_prompt
        if settings.strict_output:
            return f"{text}\n\n{STRICT_OUTPUT_INSTRUCTION}"
        return text


def _ensure_valid(settings: Settings) -> None:
    if not settings.prompts:
        settings.prompts = [Prompt("Default", settings.last_used_prompt)]
    seen = set()
    unique = []
    for prompt in settings.prompts:
        if prompt.id in seen:
            logging.warning("Dropping prompt %s with duplicate id %s", prompt.name, prompt.id)
            continue
        seen.add(prompt.id)
        unique.append(prompt)
    settings.prompts = unique
    if settings.selected_prompt_id not in seen:
        settings.selected_prompt_id = settings.prompts[0].id
