"""Tests for the stateful interpreter."""

import jax
import numpy as np
import pytest
from chip8core import Interpreter, MachineFault, Fault, Quirks, PROGRAM_START, FONT_START
from chip8core.logging import ConsoleLogger
from conftest import program, FakeClock


class TestLoading:
    """Test program loading through the interpreter."""

    def test_loaded_bytes_in_memory(self, interpreter):
        data = bytes([0xA2, 0x2A, 0x60, 0x0C, 0xFF])
        interpreter.load(data)
        assert bytes(interpreter.memory[PROGRAM_START:PROGRAM_START + 5]) == data
        assert interpreter.program == data

    def test_load_replaces_previous_program(self, interpreter):
        interpreter.load(program(0x6001, 0x6102, 0x6203))
        interpreter.step()
        interpreter.load(program(0x6301))

        assert interpreter.memory[PROGRAM_START + 2] == 0
        assert interpreter.registers[0] == 0
        before = interpreter.memory
        interpreter.reset()
        assert (interpreter.memory == before).all()

    def test_oversized_program(self, interpreter):
        with pytest.raises(ValueError):
            interpreter.load(b"\x00" * 4000)


class TestStepping:
    """Test step results."""

    def test_step_reports_display_change(self, interpreter):
        interpreter.load(program(0x6001, 0x00E0, 0xA000, 0xD005))
        results = [interpreter.step() for _ in range(4)]
        assert [r.display_changed for r in results] == [False, True, False, True]
        assert all(r.ok for r in results)
        assert results[0].opcode == 0x6001

    def test_draw_visible_in_framebuffer(self, interpreter):
        interpreter.load(program(0xA000 | FONT_START, 0xD005))
        interpreter.step()
        interpreter.step()
        frame = interpreter.framebuffer
        assert frame.shape == (64, 32)
        assert frame[0:4, 0].all()

    def test_framebuffer_is_a_copy(self, interpreter):
        frame = interpreter.framebuffer
        frame[:, :] = True
        assert not interpreter.framebuffer.any()

    def test_unknown_opcode_is_noop(self, interpreter):
        interpreter.load(program(0x0123, 0x6005))
        result = interpreter.step()
        assert result.ok
        assert not result.display_changed
        assert interpreter.pc == PROGRAM_START + 2
        interpreter.step()
        assert interpreter.registers[0] == 5

    def test_unknown_opcode_logged_at_debug(self, clock, capsys):
        machine = Interpreter(clock=clock, logger=ConsoleLogger(log_level="DEBUG", use_colors=False))
        machine.load(program(0x5121))
        machine.step()
        assert "unknown opcode 5121" in capsys.readouterr().out

    def test_call_and_return(self, interpreter):
        interpreter.load(program(0x2204, 0x0000, 0x00EE))
        interpreter.step()
        assert interpreter.pc == 0x204
        assert interpreter.stack == [0x202]
        interpreter.step()
        assert interpreter.pc == 0x202
        assert interpreter.stack == []


class TestFaults:
    """Test fault reporting."""

    def test_stack_underflow_returned(self, interpreter):
        interpreter.load(program(0x6107, 0x00EE))
        interpreter.step()
        result = interpreter.step()

        assert not result.ok
        assert isinstance(result.fault, MachineFault)
        assert result.fault.kind == Fault.STACK_UNDERFLOW
        assert result.fault.opcode == 0x00EE
        assert result.fault.pc == 0x202
        assert "00EE" in str(result.fault)
        assert interpreter.pc == 0x202
        assert interpreter.registers[1] == 7

    def test_raise_for_fault(self, interpreter):
        interpreter.load(program(0xAFFF, 0xF255))
        assert interpreter.step().ok
        result = interpreter.step()
        with pytest.raises(MachineFault) as excinfo:
            result.raise_for_fault()
        assert excinfo.value.kind == Fault.MEMORY_OUT_OF_RANGE
        assert excinfo.value.address == 0x1001

    def test_fault_does_not_corrupt_memory(self, interpreter):
        interpreter.load(program(0x60AA, 0xAFFE, 0xF255))
        interpreter.step()
        interpreter.step()
        before = interpreter.memory
        assert not interpreter.step().ok
        assert (interpreter.memory == before).all()

    def test_fault_repeats_until_reset(self, interpreter):
        interpreter.load(program(0x00EE))
        assert not interpreter.step().ok
        assert not interpreter.step().ok
        assert interpreter.pc == PROGRAM_START

    def test_call_from_last_word_keeps_full_return_address(self, interpreter):
        code = bytearray(0x1000 - PROGRAM_START)
        code[0:2] = program(0x1FFE)
        code[0x100:0x102] = program(0x00EE)  # at 0x300
        code[-2:] = program(0x2300)  # at 0xFFE
        interpreter.load(bytes(code))

        interpreter.step()
        interpreter.step()
        assert interpreter.stack == [0x1000]

        assert interpreter.step().ok
        assert interpreter.pc == 0x1000

        result = interpreter.step()
        assert result.fault.kind == Fault.PC_OUT_OF_RANGE
        assert interpreter.pc == 0x1000

    def test_no_fault_result_raises_nothing(self, interpreter):
        interpreter.load(program(0x6000))
        interpreter.step().raise_for_fault()


class TestKeys:
    """Test keypad input."""

    def test_wait_for_key(self, interpreter):
        interpreter.load(program(0xF50A, 0x6001))
        for _ in range(5):
            assert interpreter.step().ok
            assert interpreter.pc == PROGRAM_START

        keys = [False] * 16
        keys[0xB] = True
        keys[0xE] = True
        interpreter.set_keys(keys)
        interpreter.step()

        assert interpreter.pc == PROGRAM_START + 2
        assert interpreter.registers[5] == 0xB

    def test_keys_are_copied(self, interpreter):
        keys = np.zeros(16, dtype=bool)
        interpreter.set_keys(keys)
        keys[3] = True
        assert not interpreter.state.keypad[3]

    def test_wrong_key_count(self, interpreter):
        with pytest.raises(ValueError):
            interpreter.set_keys([False] * 8)


class TestTimers:
    """Test timer cadence through the interpreter."""

    def test_delay_timer_counts_down_with_clock(self, interpreter, clock):
        # V0 = 3; DT = V0; then spin on a jump
        interpreter.load(program(0x6003, 0xF015, 0x1204))
        interpreter.step()
        interpreter.step()
        assert interpreter.delay_timer == 3

        for expected in (2, 1, 0, 0):
            clock.advance(0.02)
            for _ in range(5):
                interpreter.step()
            assert interpreter.delay_timer == expected

    def test_delay_timer_exact_sixtieths(self, interpreter, clock):
        interpreter.load(program(0x6005, 0xF015, 0x1204))
        interpreter.step()
        interpreter.step()

        delays = []
        for _ in range(5):
            clock.advance(1 / 60)
            interpreter.step()
            delays.append(interpreter.delay_timer)

        assert delays == [4, 3, 2, 1, 0]

    def test_sound_active(self, interpreter):
        interpreter.load(program(0x6002, 0xF018))
        interpreter.step()
        interpreter.step()
        assert interpreter.sound_active


class TestReset:
    """Test reset semantics."""

    def test_reset_restores_power_on_state(self, interpreter):
        interpreter.load(program(0x6A12, 0xA300, 0x2208, 0x0000, 0x00E0, 0xD005, 0xF015))
        for _ in range(3):
            interpreter.step()
        interpreter.set_keys([True] * 16)

        interpreter.reset()

        fresh = Interpreter(clock=FakeClock())
        assert interpreter.pc == PROGRAM_START
        assert interpreter.index == 0
        assert not interpreter.registers.any()
        assert interpreter.stack == []
        assert interpreter.delay_timer == 0
        assert interpreter.sound_timer == 0
        assert not interpreter.framebuffer.any()
        assert not interpreter.state.keypad.any()
        assert (interpreter.memory[:PROGRAM_START] == fresh.memory[:PROGRAM_START]).all()

    def test_reset_keeps_program(self, interpreter):
        code = program(0x6001, 0x7001, 0x1202)
        interpreter.load(code)
        interpreter.step()
        interpreter.reset()
        assert bytes(interpreter.memory[PROGRAM_START:PROGRAM_START + len(code)]) == code
        interpreter.step()
        assert interpreter.registers[0] == 1

    def test_reset_discards_self_modification(self, interpreter):
        # Overwrite 0x300 with V0 = 0x55, then reset
        interpreter.load(program(0x6055, 0xA300, 0xF055))
        for _ in range(3):
            interpreter.step()
        assert interpreter.memory[0x300] == 0x55
        interpreter.reset()
        assert interpreter.memory[0x300] == 0

    def test_reset_rewinds_random_generator(self, interpreter):
        interpreter.load(program(0xC0FF))
        interpreter.step()
        first = interpreter.registers[0]
        interpreter.reset()
        interpreter.step()
        assert interpreter.registers[0] == first


class TestConfiguration:
    """Test constructor options."""

    def test_seeded_random_reproducible(self):
        values = []
        for _ in range(2):
            machine = Interpreter(seed=1234, clock=FakeClock())
            machine.load(program(0xC3FF, 0xC4FF))
            machine.step()
            machine.step()
            values.append((int(machine.registers[3]), int(machine.registers[4])))
        assert values[0] == values[1]

    def test_explicit_rng_key(self):
        key = jax.random.PRNGKey(99)
        machine = Interpreter(rng=key, clock=FakeClock())
        assert (machine.state.rng == key).all()

    def test_clipping_quirk(self):
        machine = Interpreter(quirks=Quirks(wrap_sprites=False), clock=FakeClock())
        machine.load(program(0x603E, 0xA000 | FONT_START, 0xD015))
        for _ in range(3):
            machine.step()
        assert machine.framebuffer[62:64, 0].all()
        assert not machine.framebuffer[0:2, 0].any()
