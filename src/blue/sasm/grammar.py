# type: ignore
''' Blue assembly grammar '''

import pyparsing as pp

import blue.common.ops as ops
from blue.sasm.fpp import FPP


def g_cmd(literal, op):
    return pp.CaselessKeyword(literal).setParseAction(lambda _: (FPP.issue_op, op))


keyword = pp.MatchFirst(
    [pp.CaselessKeyword(m) for m in ops.OPCODES] + [pp.CaselessKeyword('dw'), pp.CaselessKeyword('org')]
)

id = ~keyword + pp.Word(pp.alphas + '_', pp.alphanums + '_')
number = pp.Regex(r'0[xX][0-9a-fA-F]+|[+-]?[0-9]+')
comment = pp.Suppress(pp.Regex(r'//.*'))

label = (id + pp.Suppress(':')).setParseAction(lambda r: (FPP.on_label, r))

address = number.copy().setParseAction(lambda r: (FPP.on_addr, r))
ref = id.copy().setParseAction(lambda r: (FPP.on_ref, r))
operand = address | ref


def g_cmd_addr(literal, op):
    return g_cmd(literal, op) + operand


hlt_cmd = g_cmd('hlt', ops.HLT)
add_cmd = g_cmd_addr('add', ops.ADD)
xor_cmd = g_cmd_addr('xor', ops.XOR)
and_cmd = g_cmd_addr('and', ops.AND)
ior_cmd = g_cmd_addr('ior', ops.IOR)
not_cmd = g_cmd('not', ops.NOT)
lda_cmd = g_cmd_addr('lda', ops.LDA)
sta_cmd = g_cmd_addr('sta', ops.STA)
srj_cmd = g_cmd_addr('srj', ops.SRJ)
jma_cmd = g_cmd_addr('jma', ops.JMA)
jmp_cmd = g_cmd_addr('jmp', ops.JMP)
inp_cmd = g_cmd_addr('inp', ops.INP)
out_cmd = g_cmd_addr('out', ops.OUT)
ral_cmd = g_cmd('ral', ops.RAL)
csa_cmd = g_cmd('csa', ops.CSA)
nop_cmd = g_cmd('nop', ops.NOP)

# Directives
dw = (pp.Suppress(pp.CaselessKeyword('dw')) + (number | id)).setParseAction(lambda r: (FPP.issue_dw, r))
org = (pp.Suppress(pp.CaselessKeyword('org')) + number).setParseAction(lambda r: (FPP.on_org, r))

asm_cmd = hlt_cmd \
    | add_cmd \
    | xor_cmd \
    | and_cmd \
    | ior_cmd \
    | not_cmd \
    | lda_cmd \
    | sta_cmd \
    | srj_cmd \
    | jma_cmd \
    | jmp_cmd \
    | inp_cmd \
    | out_cmd \
    | ral_cmd \
    | csa_cmd \
    | nop_cmd \
    | dw \
    | org

# Fail on unknown command
unknown = pp.Regex('.+').setParseAction(lambda r: (FPP.on_fail, r))

statement = pp.Optional(label) + asm_cmd

program = pp.ZeroOrMore(comment | statement | label | unknown)
