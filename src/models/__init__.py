from .entity import TaxEntity, EntityType, EntityRole
from .ownership import OwnershipShare, InconsistentOwnershipShares, validate_ownership_shares
from .income import (
    Income,
    IncomeSchedule,
    EmploymentIncome,
    EmploymentDetails,
    BusinessIncome,
    BusinessDetails,
    InvestmentIncome,
    InvestmentDetails,
    InvestmentIncomeType,
    parse_income,
)
from .asset import (
    Asset,
    AssetCategory,
    BalanceRecord,
    StockBalanceRecord,
    StockHolding,
    PropertyExpense,
    PropertyExpenseType,
    ValuationEntry,
    JewelleryTransaction,
    JewelleryTransactionType,
    Disposal,
    Closure,
    FundingSource,
    FundingSourceType,
)
from .liability import Liability, LiabilityPayment, PaymentFrequency
from .certificate import Certificate, CertificateType

__all__ = [
    'TaxEntity',
    'EntityType',
    'EntityRole',
    'OwnershipShare',
    'InconsistentOwnershipShares',
    'validate_ownership_shares',
    'Income',
    'IncomeSchedule',
    'EmploymentIncome',
    'EmploymentDetails',
    'BusinessIncome',
    'BusinessDetails',
    'InvestmentIncome',
    'InvestmentDetails',
    'InvestmentIncomeType',
    'parse_income',
    'Asset',
    'AssetCategory',
    'BalanceRecord',
    'StockBalanceRecord',
    'StockHolding',
    'PropertyExpense',
    'PropertyExpenseType',
    'ValuationEntry',
    'JewelleryTransaction',
    'JewelleryTransactionType',
    'Disposal',
    'Closure',
    'FundingSource',
    'FundingSourceType',
    'Liability',
    'LiabilityPayment',
    'PaymentFrequency',
    'Certificate',
    'CertificateType',
]
