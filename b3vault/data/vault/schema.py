"""
账本序列化格式（YAML 文档 + Pydantic 校验）。

职责：
- Wallet ⇄ 规范化 YAML 字节串（保险库明文载荷与会话缓存共用）；
- metadata.yaml 的读写模型。

规范化口径（相同数据重复保存逐字节一致）：
- 交易按 (date, fingerprint) 排序，持仓按 ticker 排序，分配按 (date, fingerprint) 排序；
- 日期 YYYY-MM-DD；数值为 4 位小数定长字符串（禁止浮点）；持仓数量为整数；
- 字段顺序固定（按模型声明顺序输出）。
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from b3vault.core.crypto.params import ENCRYPTION_ALGORITHM, KDF_ALGORITHM, VAULT_FORMAT_VERSION
from b3vault.core.models import DEFAULT_ASSET_TYPE, Earning, EarningType, Trade, TradeSide
from b3vault.core.rules.precision import fixed4
from b3vault.core.wallet import Wallet

_DATE = r"^\d{4}-\d{2}-\d{2}$"
_DECIMAL = r"^-?\d+(\.\d+)?$"


class TradeDoc(BaseModel):
    """序列化后的交易记录。"""

    model_config = ConfigDict(extra="forbid")

    date: str = Field(..., pattern=_DATE)
    side: TradeSide
    institution: str
    ticker: str
    quantity: str = Field(..., pattern=_DECIMAL)
    price: str = Field(..., pattern=_DECIMAL)
    amount: str = Field(..., pattern=_DECIMAL)
    fingerprint: str

    @classmethod
    def from_trade(cls, t: Trade) -> TradeDoc:
        return cls(
            date=t.date.isoformat(),
            side=t.side,
            institution=t.institution,
            ticker=t.ticker,
            quantity=fixed4(t.quantity),
            price=fixed4(t.price),
            amount=fixed4(t.amount),
            fingerprint=t.fingerprint,
        )

    def to_trade(self) -> Trade:
        return Trade(
            date=date.fromisoformat(self.date),
            side=self.side,
            institution=self.institution,
            ticker=self.ticker,
            quantity=Decimal(self.quantity),
            price=Decimal(self.price),
            amount=Decimal(self.amount),
            fingerprint=self.fingerprint,
        )


class EarningDoc(BaseModel):
    """序列化后的分配记录。"""

    model_config = ConfigDict(extra="forbid")

    date: str = Field(..., pattern=_DATE)
    type: EarningType
    ticker: str
    quantity: str = Field(..., pattern=_DECIMAL)
    unit_value: str = Field(..., pattern=_DECIMAL)
    total_value: str = Field(..., pattern=_DECIMAL)
    fingerprint: str

    @classmethod
    def from_earning(cls, e: Earning) -> EarningDoc:
        return cls(
            date=e.date.isoformat(),
            type=e.type,
            ticker=e.ticker,
            quantity=fixed4(e.quantity),
            unit_value=fixed4(e.unit_value),
            total_value=fixed4(e.total_value),
            fingerprint=e.fingerprint,
        )

    def to_earning(self) -> Earning:
        return Earning(
            date=date.fromisoformat(self.date),
            type=self.type,
            ticker=self.ticker,
            quantity=Decimal(self.quantity),
            unit_value=Decimal(self.unit_value),
            total_value=Decimal(self.total_value),
            fingerprint=self.fingerprint,
        )


class AssetDoc(BaseModel):
    """
    序列化后的持仓。

    派生字段随文档一并写出便于人工核对，加载时以重算结果为准。
    """

    model_config = ConfigDict(extra="forbid")

    ticker: str
    type: str = DEFAULT_ASSET_TYPE
    subtype: str = ""
    segment: str = ""
    average_cost: str = Field("0.0000", pattern=_DECIMAL)
    invested_capital: str = Field("0.0000", pattern=_DECIMAL)
    total_earnings: str = Field("0.0000", pattern=_DECIMAL)
    quantity: int = 0
    subscription_of: str | None = None
    earnings: list[EarningDoc] = Field(default_factory=list)


class WalletDoc(BaseModel):
    """账本文档根节点。"""

    model_config = ConfigDict(extra="forbid")

    transactions: list[TradeDoc] = Field(default_factory=list)
    assets: list[AssetDoc] = Field(default_factory=list)


class VaultMetadata(BaseModel):
    """metadata.yaml（明文，只描述格式，不含任何秘密）。"""

    version: str = VAULT_FORMAT_VERSION
    algorithm: str = ENCRYPTION_ALGORITHM
    kdf: str = KDF_ALGORITHM


# ========== Wallet ⇄ 文档 ==========


def wallet_to_doc(wallet: Wallet) -> WalletDoc:
    trades = sorted(wallet.transactions, key=lambda t: (t.date, t.fingerprint))
    assets = []
    for ticker in sorted(wallet.assets):
        a = wallet.assets[ticker]
        assets.append(
            AssetDoc(
                ticker=a.ticker,
                type=a.type,
                subtype=a.subtype,
                segment=a.segment,
                average_cost=fixed4(a.average_cost),
                invested_capital=fixed4(a.invested_capital),
                total_earnings=fixed4(a.total_earnings),
                quantity=a.quantity,
                subscription_of=a.subscription_of,
                earnings=[
                    EarningDoc.from_earning(e) for e in sorted(a.earnings, key=lambda e: (e.date, e.fingerprint))
                ],
            )
        )
    return WalletDoc(transactions=[TradeDoc.from_trade(t) for t in trades], assets=assets)


def doc_to_wallet(doc: WalletDoc) -> Wallet:
    """
    由文档重建账本。

    说明：
    - 记录原样加载（保留已存储的指纹），派生字段全部重算；
    - 分类标签从持仓文档恢复；没有任何记录的持仓文档被忽略。
    """
    wallet = Wallet.from_records(
        (t.to_trade() for t in doc.transactions),
        (e.to_earning() for a in doc.assets for e in a.earnings),
    )
    for a in doc.assets:
        if not wallet.has_asset(a.ticker):
            continue
        wallet.set_classification(a.ticker, type=a.type, subtype=a.subtype, segment=a.segment)
        wallet.get_asset(a.ticker).subscription_of = a.subscription_of
    return wallet


def dump_wallet(wallet: Wallet) -> bytes:
    """序列化为规范化 YAML（UTF-8）。"""
    data = wallet_to_doc(wallet).model_dump(mode="json")
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).encode("utf-8")


def load_wallet(payload: bytes) -> Wallet:
    """
    解析 YAML 载荷为账本。

    Raises:
        yaml.YAMLError / pydantic.ValidationError: 文档格式无效（由调用方转换为保险库错误）。
    """
    data = yaml.safe_load(payload.decode("utf-8")) or {}
    return doc_to_wallet(WalletDoc.model_validate(data))


def dump_metadata(metadata: VaultMetadata) -> bytes:
    return yaml.safe_dump(metadata.model_dump(), sort_keys=False).encode("utf-8")


def load_metadata(payload: bytes) -> VaultMetadata:
    return VaultMetadata.model_validate(yaml.safe_load(payload.decode("utf-8")) or {})
