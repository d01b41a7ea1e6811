import json
from sstparse.models import OperationResult


def format_json(result: OperationResult, include_raw_output: bool = True) -> str:
    data = result.to_dict()
    if not include_raw_output:
        data.pop("raw_output", None)
    return json.dumps(data, indent=2, ensure_ascii=False)
