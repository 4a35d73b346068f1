"""
Ledger 예외 정의

모든 예외는 호출측에 그대로 전달됨 (재시도 없음).
예외 발생 시 어떤 변경도 영속되지 않은 것으로 간주.
"""


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""

    pass


class ValidationError(LedgerError, ValueError):
    """잘못된 입력 (금액, 주문 유형, 날짜 등)"""

    pass


class NotFoundError(LedgerError, LookupError):
    """존재해야 하는 레코드가 없음"""

    pass


class TransactionError(LedgerError):
    """원자적 커밋 실패 (하위 저장소 오류)"""

    pass
