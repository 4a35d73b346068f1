"""
Ledger 타입 정의

주문(Order), 사용자 집계(User), 주문 요청(OrderRequest) 정의.
금액은 모두 Decimal로 다루고 DB에는 문자열로 저장.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from core.ledger.errors import ValidationError
from core.utils.timezone import date_to_timestamp, parse_timestamp, to_business_date

ZERO = Decimal("0")

# 합계 계산용 컨텍스트 (덧셈/뺄셈 결과를 반올림하지 않음)
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


class OrderType(str, Enum):
    """주문 유형

    str을 상속하여 DB/JSON 직렬화 가능.
    """

    DEPOSIT = "deposit"  # 입금
    WITHDRAWAL = "withdrawal"  # 출금


@dataclass
class Order:
    """주문 레코드 (orders 컬렉션)"""

    id: int
    user_id: str
    type: OrderType
    amount: Decimal
    order_date: datetime  # 업무 날짜 (UTC 자정)
    submit_time: datetime  # 생성 시각 (불변)

    @property
    def business_date(self) -> date:
        """주문의 달력 날짜"""
        return self.order_date.date()

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> Order:
        """DB 행에서 생성

        행 순서: id, user_id, type, amount, order_date, submit_time
        """
        return cls(
            id=row[0],
            user_id=row[1],
            type=OrderType(row[2]),
            amount=Decimal(row[3]),
            order_date=parse_timestamp(row[4]),
            submit_time=parse_timestamp(row[5]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type.value,
            "amount": str(self.amount),
            "orderDate": self.order_date.isoformat(),
            "submitTime": self.submit_time.isoformat(),
        }


@dataclass
class User:
    """사용자 집계 레코드 (users 컬렉션)

    total_deposit / total_withdrawal 은 현재 남아있는 주문 금액의 유형별 합계.
    """

    user_id: str
    register_time: datetime
    total_deposit: Decimal = ZERO
    total_withdrawal: Decimal = ZERO
    note: str = ""

    @classmethod
    def new(cls, user_id: str, register_time: datetime) -> User:
        """첫 주문 시 생성되는 빈 집계"""
        return cls(user_id=user_id, register_time=register_time)

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> User:
        """DB 행에서 생성

        행 순서: user_id, register_time, total_deposit, total_withdrawal, note
        """
        return cls(
            user_id=row[0],
            register_time=parse_timestamp(row[1]),
            total_deposit=Decimal(row[2]),
            total_withdrawal=Decimal(row[3]),
            note=row[4] or "",
        )

    def total_for(self, order_type: OrderType) -> Decimal:
        if order_type == OrderType.DEPOSIT:
            return self.total_deposit
        return self.total_withdrawal

    def apply_order(self, order_type: OrderType, amount: Decimal) -> None:
        """주문 추가 반영 (해당 유형 합계에 가산)"""
        if order_type == OrderType.DEPOSIT:
            self.total_deposit = EXACT.add(self.total_deposit, amount)
        else:
            self.total_withdrawal = EXACT.add(self.total_withdrawal, amount)

    def revert_order(self, order_type: OrderType, amount: Decimal) -> bool:
        """주문 삭제 반영 (해당 유형 합계에서 차감, 0 미만은 0으로 고정)

        Returns:
            0 하한이 적용되었으면 True
        """
        remaining = EXACT.subtract(self.total_for(order_type), amount)
        clamped = remaining < ZERO
        if clamped:
            remaining = ZERO

        if order_type == OrderType.DEPOSIT:
            self.total_deposit = remaining
        else:
            self.total_withdrawal = remaining
        return clamped

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "registerTime": self.register_time.isoformat(),
            "totalDeposit": str(self.total_deposit),
            "totalWithdrawal": str(self.total_withdrawal),
            "note": self.note,
        }


def parse_order_type(value: OrderType | str) -> OrderType:
    """주문 유형 파싱

    Raises:
        ValidationError: deposit / withdrawal 이외의 값
    """
    if isinstance(value, OrderType):
        return value
    try:
        return OrderType(value)
    except ValueError as e:
        valid_types = [t.value for t in OrderType]
        raise ValidationError(
            f"Invalid order type: {value!r}. Expected one of {valid_types}"
        ) from e


def parse_amount(value: Decimal | str | int | float) -> Decimal:
    """금액 파싱 (0 이상 유한 Decimal)

    float는 문자열 표현을 거쳐 변환 (이진 오차 방지).

    Raises:
        ValidationError: 파싱 불가, 음수, NaN/Infinity
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")

    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            # 밑줄 구분자 ("1_000") 거부
            if "_" in value:
                raise ValidationError(f"Invalid amount: {value!r}")
            amount = Decimal(value.strip())
        else:
            raise ValidationError(f"Invalid amount: {value!r}")
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e

    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite: {value!r}")
    if amount < ZERO:
        raise ValidationError(f"Amount must not be negative: {value!r}")

    # -0 정규화
    if amount.is_zero():
        amount = abs(amount)
    return amount


def parse_order_date(value: date | datetime | str, tz: tzinfo | None = None) -> date:
    """주문일 파싱

    Raises:
        ValidationError: 날짜로 해석할 수 없는 값
    """
    try:
        return to_business_date(value, tz)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid order date: {value!r}") from e


@dataclass(frozen=True)
class OrderRequest:
    """검증된 주문 생성 요청"""

    user_id: str
    type: OrderType
    amount: Decimal
    order_date: date

    @property
    def order_date_ts(self) -> str:
        """저장용 order_date (UTC 자정 ISO)"""
        return date_to_timestamp(self.order_date)

    @classmethod
    def parse(
        cls,
        user_id: str,
        type: OrderType | str,
        amount: Decimal | str | int | float,
        order_date: date | datetime | str,
        tz: tzinfo | None = None,
    ) -> OrderRequest:
        """원시 입력을 검증하여 요청 생성

        Raises:
            ValidationError: 입력 값이 유효하지 않은 경우
        """
        # 기본 키: 공백 포함 입력 그대로 저장
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("userId is required")

        return cls(
            user_id=user_id,
            type=parse_order_type(type),
            amount=parse_amount(amount),
            order_date=parse_order_date(order_date, tz),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], tz: tzinfo | None = None) -> OrderRequest:
        """dict 입력에서 생성 (camelCase / snake_case 모두 허용)"""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            raise ValidationError(f"Missing field: {keys[0]}")

        return cls.parse(
            user_id=pick("userId", "user_id"),
            type=pick("type"),
            amount=pick("amount"),
            order_date=pick("orderDate", "order_date"),
            tz=tz,
        )
