"""
Utilitários para respostas de modelos (texto livre ou JSON).
"""

import json
import re


def strip_thinking_block(text: str) -> str:
    """Remove bloco <think>...</think> da resposta.

    Também remove blocos incompletos (sem </think>) para evitar vazamento.
    """
    text = re.sub(r"<think>[\s\S]*?</think>\s*", "", text, flags=re.DOTALL)
    text = re.sub(r"<think>[\s\S]*$", "", text, flags=re.DOTALL)
    return text.strip()


def strip_code_fences(text: str) -> str:
    """Remove markdown code blocks (```json ... ```) se presentes."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def extract_json(text: str) -> dict:
    """Extrai um objeto JSON da resposta do modelo.

    Raises:
        ValueError: se nenhum objeto JSON puder ser parseado
    """
    text = strip_code_fences(strip_thinking_block(text))

    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        # Tenta encontrar JSON na resposta
        match = re.search(r"\{[\s\S]*\}", text)
        if not match:
            raise ValueError(f"Não foi possível parsear JSON da resposta: {text[:200]}")
        try:
            result = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ValueError(f"Não foi possível parsear JSON da resposta: {text[:200]}") from e

    if not isinstance(result, dict):
        raise ValueError(f"Resposta JSON não é um objeto: {type(result).__name__}")
    return result
