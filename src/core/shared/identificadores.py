"""
Identificadores externos e relógio do domínio.

Todas as entidades recebem um identificador globalmente único e
ordenado pelo instante de criação, no layout UUID versão 7
(48 bits de timestamp em milissegundos + bits aleatórios). Assim,
ordenar ids lexicograficamente equivale a ordenar por criação, e
o id pode ser usado como referência entre sistemas sem colisão.
"""

from datetime import datetime, timezone
import os
import threading
import time
import uuid


_lock = threading.Lock()
_ultimo_ms = 0
_sequencia = 0


def novo_id() -> str:
    """
    Gera um UUIDv7 como string.

    Dentro do mesmo milissegundo um contador de 12 bits (campo rand_a)
    garante ordem monotônica entre ids gerados no mesmo processo.

    Returns:
        UUID canônico (36 caracteres)
    """
    global _ultimo_ms, _sequencia

    with _lock:
        agora_ms = time.time_ns() // 1_000_000
        if agora_ms <= _ultimo_ms:
            _sequencia += 1
            if _sequencia > 0xFFF:
                # contador esgotado: avança o relógio lógico
                _ultimo_ms += 1
                _sequencia = 0
            agora_ms = _ultimo_ms
        else:
            _ultimo_ms = agora_ms
            _sequencia = int.from_bytes(os.urandom(2), "big") & 0x3FF

        rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)

        valor = (agora_ms & ((1 << 48) - 1)) << 80
        valor |= 0x7 << 76
        valor |= _sequencia << 64
        valor |= 0b10 << 62
        valor |= rand_b

    return str(uuid.UUID(int=valor))


def timestamp_do_id(identificador: str) -> datetime:
    """Extrai o instante de criação embutido em um UUIDv7."""
    valor = uuid.UUID(identificador).int
    ms = valor >> 80
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def agora() -> datetime:
    """Instante atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)
