API = "/api/v1"

ANNA = "+79990000001"
BORIS = "+79990000002"
VERA = "+79990000003"
OPERATOR = "+70000000000"
