# chip8_tracer/common/types.py
"""
複数のレイヤーで共有する小さな型定義。
"""
from typing import Dict, List, NamedTuple

# @intent:data_structure ラベル名 -> アドレス。アセンブラが生成し、CPUがトレース表示に使用します。
SymbolMap = Dict[str, int]

class RegisterInfo(NamedTuple):
    name: str   # "V0".."VF", "PC", "SP"
    width: int  # ビット幅

# @intent:data_structure レジスタをグループ（"General", "Control"）単位でまとめたトレース表示用の定義。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]

# @intent:data_structure 逆アセンブル結果の1行。タプルとしても比較・展開できます。
class DisassemblyLine(NamedTuple):
    address: int
    hex_bytes: str  # "80 14"
    text: str       # "ADD V0, V1"
