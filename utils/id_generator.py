import uuid


def generate_loan_id() -> str:
    return str(uuid.uuid4())


def generate_modification_id() -> str:
    return str(uuid.uuid4())


def emi_id(loan_id: str, emi_number: int, is_adjustment: bool = False) -> str:
    if is_adjustment:
        return f"{loan_id}-emi-adjustment"
    return f"{loan_id}-emi-{emi_number}"
