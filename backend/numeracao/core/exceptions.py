"""
Erros tipados do serviço de numeração

O gerador nunca engole nem rebaixa estes erros: quem chama decide a política
de retry. Cada erro carrega o status HTTP usado pelas rotas.
"""
from typing import Optional


class NumberingError(Exception):
    """Base de todos os erros de numeração"""
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__


class ConfigNotFound(NumberingError):
    """Não existe regra ativa para tenant + tipo de documento"""
    status_code = 404

    def __init__(self, tenant_id: int, document_type: str):
        super().__init__(
            f"Configuração de numeração ativa não encontrada para o tipo '{document_type}'"
        )
        self.tenant_id = tenant_id
        self.document_type = document_type


class MissingRequiredPrefix(NumberingError):
    """Prefixo obrigatório não informado"""
    status_code = 422

    def __init__(self, slot: int, label: Optional[str] = None):
        name = label or f"prefixo {slot}"
        super().__init__(f"Prefixo obrigatório não informado: {name}")
        self.slot = slot
        self.label = label


class InvalidPrefixValue(NumberingError):
    """Prefixo vazio ou contendo o separador"""
    status_code = 422

    def __init__(self, slot: int, value: str, reason: str):
        super().__init__(f"Valor inválido para o prefixo {slot} ({value!r}): {reason}")
        self.slot = slot
        self.value = value


class InvalidDocumentNumber(NumberingError):
    """Número não corresponde ao formato da configuração"""
    status_code = 422

    def __init__(self, number: str, reason: str):
        super().__init__(f"Número de documento inválido '{number}': {reason}")
        self.number = number


class HistoryNotFound(NumberingError):
    """Registro de histórico inexistente ou de outro tenant"""
    status_code = 404

    def __init__(self, history_id: int):
        super().__init__("Registro de numeração não encontrado")
        self.history_id = history_id


class AlreadyVoided(NumberingError):
    """Número já cancelado - o pedido de cancelamento é redundante"""
    status_code = 409

    def __init__(self, history_id: int, generated_number: Optional[str] = None):
        detail = f" ({generated_number})" if generated_number else ""
        super().__init__(f"Número de documento já cancelado{detail}")
        self.history_id = history_id


class DuplicateDocumentNumber(NumberingError):
    """
    O número formatado já existe no histórico do tenant.
    Repetir gera o mesmo texto: não é retryable.
    """
    status_code = 409

    def __init__(self, number: str):
        super().__init__(f"Número de documento já emitido: {number}")
        self.number = number


class PersistenceConflict(NumberingError):
    """
    Falha transitória do incremento atômico (deadlock, serialização, lock).
    Nenhum estado parcial fica visível: seguro repetir.
    """
    status_code = 409
    retryable = True


class PersistenceUnavailable(NumberingError):
    """Falha de infraestrutura do banco. Não é repetida internamente."""
    status_code = 503
