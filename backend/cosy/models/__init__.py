from .tenancy import Store, StoreAccess, StoreInvite, STORE_ROLES
from .auth import User, Profile, SessionToken
from .ledger import Transaction, TRANSACTION_TYPES
from .directory import Supplier, Employee, FixedAsset
from .timekeeping import EmployeeOvertime

__all__ = [
    'Store', 'StoreAccess', 'StoreInvite', 'STORE_ROLES',
    'User', 'Profile', 'SessionToken',
    'Transaction', 'TRANSACTION_TYPES',
    'Supplier', 'Employee', 'FixedAsset',
    'EmployeeOvertime',
]
