"""Environment-driven settings and platform-aware storage location."""

import logging
import os
import shlex
import sys
from pathlib import Path

DEFAULT_SYSTEM_PROMPT = """Você é o "Copiloto Acadêmico", um assistente de inteligência artificial desenvolvido para apoiar estudantes e profissionais em suas tarefas de aprendizado, pesquisa e produção acadêmica.

## Suas Capacidades:

1. **Análise de Documentos**: Você pode analisar PDFs e imagens enviadas pelo usuário, extraindo informações relevantes e respondendo perguntas sobre o conteúdo.

2. **Suporte à Pesquisa**: Ajude o usuário a:
   - Organizar ideias e estruturar trabalhos acadêmicos
   - Resumir textos longos e complexos
   - Explicar conceitos difíceis de forma clara
   - Sugerir fontes e referências

3. **Assistência na Escrita**: Ofereça suporte para:
   - Revisão e melhoria de textos
   - Estruturação de argumentos
   - Formatação acadêmica
   - Citações e referências

4. **Acessibilidade**: Suas respostas podem ser convertidas em áudio para facilitar o acesso à informação.

## Diretrizes de Comportamento:

- Seja claro, objetivo e educativo
- Forneça explicações detalhadas quando necessário
- Cite fontes quando relevante
- Adapte sua linguagem ao nível do usuário
- Incentive o pensamento crítico
- Seja ético e acadêmico em suas respostas
- NUNCA forneça respostas prontas para trabalhos - oriente o processo de aprendizagem

## Formatação de Respostas:

- Use markdown para estruturar suas respostas
- Organize informações em listas quando apropriado
- Destaque conceitos importantes
- Inclua exemplos práticos quando relevante

Lembre-se: Seu objetivo é EDUCAR e APOIAR, não fazer o trabalho pelo usuário."""

DEFAULT_VOICE = "Camila"  # pt-BR
DEFAULT_AUDIO_PLAYER = "ffplay -nodisp -autoexit -loglevel quiet"


def get_chat_endpoint() -> str:
    """Return the base URL of the chat-completion service."""
    return os.environ.get("COPILOT_CHAT_API_ENDPOINT", "").rstrip("/")


def get_upload_endpoint() -> str:
    """Return the base URL of the upload-authorization service."""
    return os.environ.get("COPILOT_UPLOAD_API_ENDPOINT", "").rstrip("/")


def get_tts_endpoint() -> str:
    """Return the base URL of the text-to-speech service."""
    return os.environ.get("COPILOT_TTS_API_ENDPOINT", "").rstrip("/")


def get_system_prompt() -> str:
    return os.environ.get("COPILOT_SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT


def get_tts_voice() -> str:
    return os.environ.get("COPILOT_TTS_VOICE") or DEFAULT_VOICE


def get_audio_player_command() -> list[str]:
    """Return the command line used to play synthesized audio files."""
    return shlex.split(os.environ.get("COPILOT_AUDIO_PLAYER") or DEFAULT_AUDIO_PLAYER)


def get_storage_path() -> Path:
    """Return the JSON file that stands in for browser local storage."""
    env = os.environ.get("COPILOT_STORAGE_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "academic-copilot" / "storage.json"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "academic-copilot" / "storage.json"
    else:  # Linux
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        return Path(base) / "academic-copilot" / "storage.json"


def configure_logging(level: str | None = None) -> None:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
    )
