"""
Configurações do LexCascade.
"""

import os
from dataclasses import dataclass, field

from .models import TransformationConfig


DEFAULT_LEGAL_TERMS = (
    "article",
    "loi",
    "décret",
    "dispositions",
    "promulgué",
    "république",
    "président",
    "ministre",
    "journal officiel",
    "conformément",
    "application",
    "notamment",
    "toutefois",
)


def _parse_terms(raw: str) -> tuple[str, ...]:
    terms = [t.strip().lower() for t in raw.split(",")]
    return tuple(t for t in terms if t)


@dataclass
class Config:
    """Configuração da cascata de extração."""

    # Quality gates
    ocr_quality_threshold: float = 0.3
    json_quality_threshold: float = 0.5

    # Texto nativo vs OCR
    native_text_threshold: float = 0.5
    native_first_page_min_chars: int = 50
    pdf_page_dpi: int = 200

    # Transformações IA
    ai_temperature: float = 0.1
    ai_max_tokens: int = 4000
    ai_chunk_size: int = 2000
    ai_chunk_overlap: int = 200
    ai_timeout_seconds: float = 300.0
    ai_max_images_per_request: int = 5

    # vLLM (OpenAI-compatible local)
    vllm_base_url: str = "http://localhost:8002/v1"
    vllm_model: str = "Qwen/Qwen3-VL-8B-Instruct"
    vllm_vision: bool = True

    # Groq (OpenAI-compatible cloud)
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_vision_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"

    # Ollama
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5vl:7b"

    # Recursos
    dictionary_path: str = ""
    corrections_path: str = ""
    signatories_path: str = ""
    unrecognized_words_path: str = "data/word_non_recognize.txt"
    legal_terms: tuple[str, ...] = field(default_factory=lambda: DEFAULT_LEGAL_TERMS)

    @classmethod
    def from_env(cls) -> "Config":
        """Carrega configuração de variáveis de ambiente."""
        legal_terms = os.getenv("LEGAL_TERMS")
        return cls(
            ocr_quality_threshold=float(os.getenv("OCR_QUALITY_THRESHOLD", "0.3")),
            json_quality_threshold=float(os.getenv("JSON_QUALITY_THRESHOLD", "0.5")),
            native_text_threshold=float(os.getenv("NATIVE_TEXT_THRESHOLD", "0.5")),
            native_first_page_min_chars=int(os.getenv("NATIVE_FIRST_PAGE_MIN_CHARS", "50")),
            pdf_page_dpi=int(os.getenv("PDF_PAGE_DPI", "200")),
            ai_temperature=float(os.getenv("AI_TEMPERATURE", "0.1")),
            ai_max_tokens=int(os.getenv("AI_MAX_TOKENS", "4000")),
            ai_chunk_size=int(os.getenv("AI_CHUNK_SIZE", "2000")),
            ai_chunk_overlap=int(os.getenv("AI_CHUNK_OVERLAP", "200")),
            ai_timeout_seconds=float(os.getenv("AI_TIMEOUT_SECONDS", "300")),
            ai_max_images_per_request=int(os.getenv("AI_MAX_IMAGES_PER_REQUEST", "5")),
            vllm_base_url=os.getenv("VLLM_BASE_URL", "http://localhost:8002/v1"),
            vllm_model=os.getenv("VLLM_MODEL", "Qwen/Qwen3-VL-8B-Instruct"),
            vllm_vision=os.getenv("VLLM_VISION", "true").lower() == "true",
            groq_base_url=os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            groq_model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
            groq_vision_model=os.getenv(
                "GROQ_VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct"
            ),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "qwen2.5vl:7b"),
            dictionary_path=os.getenv("DICTIONARY_PATH", ""),
            corrections_path=os.getenv("CORRECTIONS_PATH", ""),
            signatories_path=os.getenv("SIGNATORIES_PATH", ""),
            unrecognized_words_path=os.getenv(
                "UNRECOGNIZED_WORDS_PATH", "data/word_non_recognize.txt"
            ),
            legal_terms=_parse_terms(legal_terms) if legal_terms else DEFAULT_LEGAL_TERMS,
        )

    def transformation_config(self) -> TransformationConfig:
        """Parâmetros de geração/chunking usados pelos estágios IA."""
        return TransformationConfig(
            temperature=self.ai_temperature,
            max_tokens=self.ai_max_tokens,
            chunk_size=self.ai_chunk_size,
            chunk_overlap=self.ai_chunk_overlap,
            timeout_seconds=self.ai_timeout_seconds,
            max_images_per_request=self.ai_max_images_per_request,
        )


# Singleton
config = Config.from_env()
