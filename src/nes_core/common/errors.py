# nes_core/common/errors.py
"""
エミュレーションコアが送出する例外の定義。

ロード時の致命的エラー（ROM形式不正、未対応マッパー）と、
実行時の致命的エラー（未実装オペコード）を区別します。
未マップアドレスへのアクセスは例外ではなく、バスが既定値 0 を返します。
"""


# @intent:responsibility このパッケージが送出する全ての例外の基底クラス。
class NesCoreError(Exception):
    pass


# @intent:responsibility ROMイメージのヘッダやデータが iNES 形式として不正であることを示します。
class InvalidRomFormat(NesCoreError, ValueError):
    pass


# @intent:responsibility ヘッダが要求するマッパー番号に対応する実装が存在しないことを示します。
class UnsupportedMapper(NesCoreError, ValueError):
    def __init__(self, mapper_id: int):
        self.mapper_id = mapper_id
        super().__init__(f"Unsupported mapper id: {mapper_id}")


# @intent:responsibility 命令表に存在しないオペコードをフェッチしたことを示します。
# @intent:post-condition 送出時点でCPUのレジスタは変更されていません。
class UnimplementedOpcode(NesCoreError, RuntimeError):
    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unimplemented opcode ${opcode:02X} at ${pc:04X}")
