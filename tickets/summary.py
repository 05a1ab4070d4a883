"""Executive summary of the current tickets, written by a hosted Gemini model."""
import logging

from google import genai
from google.genai import types

from .models import Priority

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"

MISSING_KEY_MESSAGE = "API Key not configured. Please ensure GEMINI_API_KEY is set."
EMPTY_RESPONSE_MESSAGE = "Gagal menghasilkan ringkasan."
FAILURE_MESSAGE = "Maaf, terjadi kesalahan saat menghubungi asisten AI untuk membuat ringkasan."

PROMPT_TEMPLATE = """Role: Bertindaklah sebagai IT Supervisor profesional.
Konteks: Laporan untuk Pimpinan Perusahaan grup (4 perusahaan).
Data Tiket:
{ticket_lines}

Tugas:
Buatlah ringkasan eksekutif singkat (maksimal 2 paragraf) dalam Bahasa Indonesia yang formal dan sopan.
1. Soroti kendala prioritas tinggi yang belum selesai.
2. Berikan apresiasi singkat untuk pekerjaan yang sudah selesai.
3. Berikan statistik singkat (Selesai vs Pending).

Jangan gunakan format markdown yang rumit, cukup paragraf teks biasa.
"""


def format_ticket_line(ticket):
    marker = "(PRIORITY!)" if ticket.priority == Priority.HIGH.value else ""
    return (
        f"- [{ticket.status}] {marker} {ticket.company}: {ticket.issue} "
        f"({ticket.type}) by {ticket.pic} on {ticket.date}"
    )


def build_prompt(tickets):
    return PROMPT_TEMPLATE.format(ticket_lines="\n".join(format_ticket_line(t) for t in tickets))


class SummaryRequester:
    def __init__(self, api_key, model=DEFAULT_MODEL, timeout=60, client=None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    def generate(self, tickets):
        if not self.api_key:
            return MISSING_KEY_MESSAGE

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(tickets),
            )
            text = (response.text or "").strip()
        except Exception as exc:
            logger.error("Gemini API error: %s", exc)
            return FAILURE_MESSAGE

        return text or EMPTY_RESPONSE_MESSAGE
