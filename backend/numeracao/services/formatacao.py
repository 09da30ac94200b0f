"""
Montagem e leitura do número de documento

Formato: {tipo}{sep}{periodo}[{sep}{prefixo1}][{sep}{prefixo2}]{sep}{sequencia}
Prefixo ausente (None) é omitido junto com o seu separador.
"""
from dataclasses import dataclass
from typing import Optional

from numeracao.core.exceptions import (
    InvalidDocumentNumber,
    InvalidPrefixValue,
    MissingRequiredPrefix,
)
from numeracao.models.configuracao import NumberingConfig
from numeracao.services.periodos import PERIOD_LENGTHS


@dataclass(frozen=True)
class NumberComponents:
    period: str
    prefix1: Optional[str]
    prefix2: Optional[str]
    sequence_number: int


def validate_prefixes(
    config: NumberingConfig,
    prefix1: Optional[str],
    prefix2: Optional[str]
) -> None:
    """
    Valida os prefixos informados contra a configuração.

    Só a obrigatoriedade é verificada: o valor padrão da configuração é
    uma sugestão para a interface, nunca aplicado aqui.

    Raises:
        MissingRequiredPrefix: prefixo obrigatório ausente
        InvalidPrefixValue: prefixo vazio, contendo o separador ou
            prefixo 2 sozinho quando o slot único é o 1
    """
    slots = (
        (1, prefix1, config.prefix1_required, config.prefix1_label),
        (2, prefix2, config.prefix2_required, config.prefix2_label),
    )
    for slot, value, required, label in slots:
        if value is None:
            if required:
                raise MissingRequiredPrefix(slot, label)
            continue
        if value == "" or value.strip() != value:
            raise InvalidPrefixValue(slot, value, "não pode ser vazio nem ter espaços nas pontas")
        if config.separator and config.separator in value:
            raise InvalidPrefixValue(slot, value, f"não pode conter o separador '{config.separator}'")

    # Um prefixo sozinho sempre ocupa o mesmo slot, senão dois contadores
    # diferentes produziriam o mesmo texto (PO-0125-A-0001)
    if (prefix1 is None) != (prefix2 is None):
        slot = single_prefix_slot(config)
        if slot == 1 and prefix1 is None:
            raise InvalidPrefixValue(
                2, prefix2, "sem o prefixo 1 o número seria lido como prefixo 1; informe os dois"
            )
        if slot == 2 and prefix2 is None:
            raise InvalidPrefixValue(1, prefix1, "esta configuração usa apenas o prefixo 2")


def format_rule_violation(
    document_type: Optional[str],
    sequence_padding: Optional[str],
    separator: Optional[str]
) -> Optional[str]:
    """
    Regras que mantêm o número único e legível de volta.
    Campos None não são verificados (atualização parcial).

    Returns:
        Motivo da violação, ou None se a combinação é válida

    Usage:
        format_rule_violation("INV", "1", "-")   # padding numérico: 0001 e 0011 viram 1111
        format_rule_violation("SO", "0", "1")    # separador numérico: SO1012510001
    """
    if sequence_padding is not None and sequence_padding != "0" and sequence_padding.isdigit():
        return "O caractere de preenchimento deve ser '0' ou não numérico"
    if separator is not None:
        if any(c.isdigit() for c in separator):
            return "O separador não pode conter dígitos"
        if sequence_padding is not None and sequence_padding in separator:
            return "O caractere de preenchimento não pode fazer parte do separador"
        if document_type is not None and separator in document_type:
            return "O tipo de documento não pode conter o separador"
    return None


def single_prefix_slot(config: NumberingConfig) -> int:
    """Slot ocupado quando o número tem um único segmento de prefixo"""
    if config.prefix_configured(1) or not config.prefix_configured(2):
        return 1
    return 2


def format_sequence(config: NumberingConfig, sequence_number: int) -> str:
    """Sequência com padding à esquerda; números maiores que a largura não são truncados"""
    padding = config.sequence_padding or "0"
    return str(sequence_number).rjust(config.sequence_length, padding)


def format_document_number(
    config: NumberingConfig,
    period: str,
    prefix1: Optional[str],
    prefix2: Optional[str],
    sequence_number: int
) -> str:
    """
    Monta o número final.

    Usage:
        format_document_number(cfg, "0125", "WH1", "LOCAL", 1)  # PO-0125-WH1-LOCAL-0001
        format_document_number(cfg, "0125", "WH1", None, 1)     # PO-0125-WH1-0001
    """
    parts = [config.document_type, period]
    if prefix1 is not None:
        parts.append(prefix1)
    if prefix2 is not None:
        parts.append(prefix2)
    parts.append(format_sequence(config, sequence_number))
    return config.separator.join(parts)


def parse_document_number(config: NumberingConfig, number: str) -> NumberComponents:
    """
    Lê de volta os componentes de um número gerado com a configuração.

    Com um único segmento de prefixo, o slot vem de single_prefix_slot,
    a mesma regra aplicada na geração.

    Raises:
        InvalidDocumentNumber: número fora do formato
    """
    sep = config.separator
    head = f"{config.document_type}{sep}"
    if not number.startswith(head):
        raise InvalidDocumentNumber(number, f"não começa com '{head}'")

    rest = number[len(head):]
    period_length = PERIOD_LENGTHS[config.period_format]
    period = rest[:period_length]
    if len(period) != period_length or not period.isdigit():
        raise InvalidDocumentNumber(number, "período inválido")

    rest = rest[period_length:]
    if not rest.startswith(sep):
        raise InvalidDocumentNumber(number, "separador ausente após o período")

    segments = rest[len(sep):].split(sep)
    sequence_part = segments[-1]
    padding = config.sequence_padding or "0"
    digits = sequence_part.lstrip(padding) if padding != "0" else sequence_part
    if not digits.isdigit() or len(sequence_part) < config.sequence_length:
        raise InvalidDocumentNumber(number, "sequência inválida")
    sequence_number = int(digits)
    if sequence_number < 1:
        raise InvalidDocumentNumber(number, "sequência inválida")

    prefixes = segments[:-1]
    if any(p == "" for p in prefixes):
        raise InvalidDocumentNumber(number, "segmento de prefixo vazio")

    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    if len(prefixes) == 2:
        prefix1, prefix2 = prefixes
    elif len(prefixes) == 1:
        if single_prefix_slot(config) == 1:
            prefix1 = prefixes[0]
        else:
            prefix2 = prefixes[0]
    elif len(prefixes) > 2:
        raise InvalidDocumentNumber(number, "segmentos demais")

    return NumberComponents(
        period=period,
        prefix1=prefix1,
        prefix2=prefix2,
        sequence_number=sequence_number,
    )
