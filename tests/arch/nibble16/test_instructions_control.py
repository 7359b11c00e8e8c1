import unittest
from nibble_tracer.transport.bus import Bus, RAM
from nibble_tracer.transport.console import BufferedSink
from nibble_tracer.core.errors import StackOverflowError, StackUnderflowError
from nibble_tracer.arch.nibble16.cpu import Nibble16Cpu
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.instructions import decode_instruction, execute_instruction

class TestNibble16ControlInstructions(unittest.TestCase):
    def setUp(self):
        self.bus = Bus()
        self.bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
        self.out = BufferedSink()
        self.cpu = Nibble16Cpu(self.bus, output=self.out, trace=False)
        self.state = self.cpu.get_state()

    def _execute(self, word, current_pc=0x200):
        self.state.pc = current_pc
        op = decode_instruction(Instruction(word))
        self.state.pc = (self.state.pc + op.length) & 0xFFFF
        execute_instruction(op, self.state, self.bus, self.out)
        return op

    def test_jp(self):
        op = self._execute(0x1345)
        self.assertEqual(op.mnemonic, "JP")
        self.assertEqual(op.operands, ["$345"])
        self.assertEqual(self.state.pc, 0x345)

    def test_jp_v0(self):
        self.state.registers[0] = 0x10
        op = self._execute(0xB300)
        self.assertEqual(op.operands, ["V0", "$300"])
        self.assertEqual(self.state.pc, 0x310)

    def test_call_ret(self):
        # CALL $300 (PC: 0x200 -> 戻り先 0x202)
        self._execute(0x2300, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x300)
        self.assertEqual(self.state.sp, 1)
        self.assertEqual(self.state.stack[1], 0x202)
        self.assertEqual(self.state.stack[0], 0) # スロット0は使われない

        self._execute(0x0000, current_pc=0x300)
        self.assertEqual(self.state.pc, 0x202)
        self.assertEqual(self.state.sp, 0)

    def test_ret_ignores_operand(self):
        self.state.sp = 1
        self.state.stack[1] = 0x250
        op = self._execute(0x0ABC)
        self.assertEqual(op.mnemonic, "RET")
        self.assertEqual(self.state.pc, 0x250)

    # 15段までのネストは許可され、16段目でスタックオーバーフローとなる
    def test_call_stack_overflow(self):
        for depth in range(1, 16):
            self._execute(0x2200, current_pc=0x200)
            self.assertEqual(self.state.sp, depth)

        with self.assertRaises(StackOverflowError):
            self._execute(0x2200, current_pc=0x200)
        self.assertEqual(self.state.sp, 15)

    # スタック範囲外のSPからのRETはフォールトになる
    def test_ret_with_stack_pointer_outside_stack(self):
        self.state.sp = 20
        with self.assertRaises(StackOverflowError):
            self._execute(0x0000)
        self.assertEqual(self.state.sp, 20)

    def test_ret_stack_underflow(self):
        with self.assertRaises(StackUnderflowError):
            self._execute(0x0000)
        self.assertEqual(self.state.sp, 0)

    # @intent:test_case_skip 条件成立時はPCが4、不成立時は2だけ進むことを検証します。
    def test_se_imm(self):
        self.state.registers[3] = 0x42
        self._execute(0x3342, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x204)
        self._execute(0x3343, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x202)

    def test_sne_imm(self):
        self.state.registers[3] = 0x42
        self._execute(0x4343, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x204)
        self._execute(0x4342, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x202)

    def test_se_reg(self):
        self.state.registers[1] = 7
        self.state.registers[2] = 7
        self._execute(0x5120, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x204)
        self.state.registers[2] = 8
        self._execute(0x5120, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x202)

    def test_sne_reg(self):
        self.state.registers[1] = 7
        self.state.registers[2] = 8
        op = self._execute(0x9120, current_pc=0x200)
        self.assertEqual(op.mnemonic, "SNE")
        self.assertEqual(self.state.pc, 0x204)
        self.state.registers[2] = 7
        self._execute(0x9120, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x202)

    def test_register_compare_ignores_low_nibble(self):
        self.state.registers[1] = 7
        self.state.registers[2] = 7
        self._execute(0x5123, current_pc=0x200)
        self.assertEqual(self.state.pc, 0x204)

if __name__ == '__main__':
    unittest.main()
