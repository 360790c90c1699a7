"""
oracle.prompts
文本模式与截图模式的提示词（波兰语为参考版本，另附英语版本）。
"""

from __future__ import annotations

from typing import Sequence

TEXT_PROMPTS = {
    "pl": (
        "Jesteś ekspertem w rozwiązywaniu quizów. Przeanalizuj poniższe pytanie i listę odpowiedzi. "
        "Twoim zadaniem jest wybrać jedną, poprawną odpowiedź.\n\n"
        "PYTANIE:\n\"{question}\"\n\n"
        "MOŻLIWE ODPOWIEDZI:\n{options}\n\n"
        "INSTRUKCJE:\n"
        "1. Uważnie przeczytaj pytanie i wszystkie odpowiedzi.\n"
        "2. Wykorzystaj swoją wiedzę, aby wybrać najlepszą odpowiedź.\n"
        "3. Zwróć TYLKO I WYŁĄCZNIE DOKŁADNY TEKST wybranej odpowiedzi z powyższej listy.\n"
        "4. Nie dodawaj żadnych wyjaśnień, numeracji, ani słów typu \"Odpowiedź:\". Skopiuj tekst 1:1.\n\n"
        "PRAWIDŁOWA ODPOWIEDŹ:"
    ),
    "en": (
        "You are an expert quiz solver. Read the question and the list of answers below. "
        "Your task is to choose the one correct answer.\n\n"
        "QUESTION:\n\"{question}\"\n\n"
        "POSSIBLE ANSWERS:\n{options}\n\n"
        "INSTRUCTIONS:\n"
        "1. Read the question and every answer carefully.\n"
        "2. Use your knowledge to choose the best answer.\n"
        "3. Return ONLY the EXACT TEXT of the chosen answer from the list above.\n"
        "4. Do not add explanations, numbering or words like \"Answer:\". Copy the text 1:1.\n\n"
        "CORRECT ANSWER:"
    ),
}

IMAGE_PROMPTS = {
    "pl": (
        "Przeanalizuj zrzut ekranu przedstawiający pytanie z testu wielokrotnego wyboru.\n\n"
        "TWOJE ZADANIE:\n"
        "1. Zidentyfikuj pytanie na obrazku.\n"
        "2. Zidentyfikuj wszystkie możliwe opcje odpowiedzi.\n"
        "3. Wybierz jedną, prawidłową odpowiedź.\n\n"
        "INSTRUKCJE DOTYCZĄCE ODPOWIEDZI:\n"
        "- Zwróć TYLKO I WYŁĄCZNIE DOKŁADNY TEKST prawidłowej odpowiedzi, tak jak jest widoczny na obrazku.\n"
        "- Skopiuj odpowiedź 1:1, wliczając w to litery lub cyfry na początku.\n"
        "- Nie dodawaj żadnych wyjaśnień ani komentarzy.\n\n"
        "PRAWIDŁOWA ODPOWIEDŹ:"
    ),
    "en": (
        "Analyse the screenshot showing a multiple-choice test question.\n\n"
        "YOUR TASK:\n"
        "1. Identify the question in the image.\n"
        "2. Identify every possible answer option.\n"
        "3. Choose the one correct answer.\n\n"
        "ANSWER INSTRUCTIONS:\n"
        "- Return ONLY the EXACT TEXT of the correct answer as it is visible in the image.\n"
        "- Copy the answer 1:1, including any leading letters or numbers.\n"
        "- Do not add explanations or comments.\n\n"
        "CORRECT ANSWER:"
    ),
}


def _pick(table, locale: str) -> str:
    return table.get((locale or "").lower()) or table["pl"]


def build_text_prompt(question: str, answers: Sequence[str], locale: str = "pl") -> str:
    options = "\n".join(f"- {a}" for a in answers)
    return _pick(TEXT_PROMPTS, locale).format(question=question, options=options)


def build_image_prompt(locale: str = "pl") -> str:
    return _pick(IMAGE_PROMPTS, locale)
